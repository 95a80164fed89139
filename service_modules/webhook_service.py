"""
Webhook Service - verifies and dispatches payment provider events.
"""
from .base import (
    logging, Optional,
    SQLAlchemyError, IntegrityError,
    SessionLocal, ProcessedWebhookEventORM,
    InvalidInputError, InvalidSignatureError, InternalError
)
from .payment_gateway import construct_webhook_event
from .pass_service import PassService, get_pass_service
from config import STRIPE_WEBHOOK_SECRET
import stripe

logger = logging.getLogger("gym_pass")

# Stripe event types; "succeeded" is the captured payment
EVENT_PAYMENT_CAPTURED = "payment_intent.succeeded"
EVENT_PAYMENT_FAILED = "payment_intent.payment_failed"


def _field(obj, key):
    """Read a key from a Stripe object; None when absent."""
    if obj is None or key not in obj:
        return None
    return obj[key]


class WebhookService:
    """Service for payment provider webhooks."""

    def __init__(self, pass_service: Optional[PassService] = None, session_factory=None, secret: Optional[str] = None):
        self.pass_service = pass_service or get_pass_service()
        self._session_factory = session_factory or SessionLocal
        self.secret = secret if secret is not None else STRIPE_WEBHOOK_SECRET

    def handle_payment_webhook(self, raw_payload: bytes, signature: Optional[str]) -> dict:
        """Handle one webhook delivery. Redelivered events are no-ops."""
        try:
            event = construct_webhook_event(raw_payload, signature, self.secret)
        except stripe.SignatureVerificationError as e:
            logger.warning(f"Rejected webhook with invalid signature: {e}")
            raise InvalidSignatureError()
        except ValueError:
            raise InvalidInputError("Invalid payload")

        event_id = _field(event, "id")
        event_type = _field(event, "type")

        if event_type not in (EVENT_PAYMENT_CAPTURED, EVENT_PAYMENT_FAILED):
            logger.info(f"Ignoring webhook event {event_id} of type {event_type}")
            return {"status": "ignored"}

        if event_id and self._already_processed(event_id):
            logger.info(f"Webhook event {event_id} already processed")
            return {"status": "duplicate"}

        order_id = _field(_field(_field(event, "data"), "object"), "id")
        if not order_id:
            raise InvalidInputError("Event carries no payment id")

        if event_type == EVENT_PAYMENT_CAPTURED:
            result = self.pass_service.mark_order_paid(order_id)
        else:
            result = self.pass_service.mark_order_failed(order_id)

        if event_id and not self._record_processed(event_id, event_type):
            return {"status": "duplicate"}

        if result is None:
            logger.warning(f"Webhook event {event_id}: no pass for order {order_id}")
            return {"status": "unmatched"}

        logger.info(f"Handled webhook event {event_id} ({event_type}) for pass {result['id']}")
        return {"status": "success", "pass_id": result["id"], "payment_status": result["payment_status"]}

    def _already_processed(self, event_id: str) -> bool:
        db = self._session_factory()
        try:
            return db.query(ProcessedWebhookEventORM).filter(
                ProcessedWebhookEventORM.id == event_id
            ).first() is not None
        finally:
            db.close()

    def _record_processed(self, event_id: str, event_type: str) -> bool:
        """False when a concurrent delivery recorded the event first."""
        db = self._session_factory()
        try:
            db.add(ProcessedWebhookEventORM(id=event_id, event_type=event_type))
            db.commit()
            return True
        except IntegrityError:
            db.rollback()
            return False
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error recording webhook event {event_id}: {e}")
            raise InternalError("Failed to record webhook event")
        finally:
            db.close()


# Singleton instance
webhook_service = WebhookService()


def get_webhook_service() -> WebhookService:
    """Dependency injection helper."""
    return webhook_service
