"""
Payment Gateway - opens payment orders with Stripe and verifies webhook signatures.
"""
from .base import logging, uuid, Optional, GatewayError
from config import STRIPE_SECRET_KEY
import stripe

# Configure Stripe
stripe.api_key = STRIPE_SECRET_KEY

logger = logging.getLogger("gym_pass")


def is_stripe_configured(api_key: Optional[str] = None) -> bool:
    """Check if Stripe API key is configured (not a placeholder)."""
    api_key = api_key if api_key is not None else STRIPE_SECRET_KEY
    return bool(api_key) and not api_key.startswith("your_") and len(api_key) > 20


WEBHOOK_TOLERANCE_SECONDS = 300


def _decode_body(raw_body) -> str:
    # Stripe signs the text form of the body
    if isinstance(raw_body, (bytes, bytearray)):
        return raw_body.decode("utf-8")
    return raw_body


def verify_webhook_signature(
    raw_body: bytes,
    signature_header: Optional[str],
    secret: Optional[str],
    tolerance: int = WEBHOOK_TOLERANCE_SECONDS
) -> bool:
    """Check a Stripe-Signature header (t=...,v1=...) against the exact request bytes.

    v1 is the hex HMAC-SHA256 of "{t}.{body}"; stale timestamps are rejected.
    """
    if not signature_header or not secret:
        return False
    try:
        stripe.WebhookSignature.verify_header(_decode_body(raw_body), signature_header, secret, tolerance)
    except (stripe.SignatureVerificationError, UnicodeDecodeError):
        return False
    return True


def construct_webhook_event(raw_body: bytes, signature_header: Optional[str], secret: Optional[str]):
    """Verify and parse a webhook delivery.

    Raises stripe.SignatureVerificationError for a bad or missing signature and
    ValueError when the verified body is not JSON.
    """
    if not signature_header or not secret:
        raise stripe.SignatureVerificationError("Missing signature or webhook secret", signature_header)
    try:
        payload = _decode_body(raw_body)
    except UnicodeDecodeError:
        raise stripe.SignatureVerificationError("Body is not UTF-8", signature_header)
    return stripe.Webhook.construct_event(payload, signature_header, secret, tolerance=WEBHOOK_TOLERANCE_SECONDS)


class PaymentGateway:
    """Contract the pass lifecycle relies on. Implementations talk to one provider."""

    def create_order(self, amount_minor_units: int, currency: str, reference: str, metadata: dict) -> dict:
        """Open an order and return {"id": ..., "client_secret": ...}."""
        raise NotImplementedError

    def verify_payment(self, order_id: Optional[str], payment_id: str) -> bool:
        """True when payment_id is a succeeded payment for order_id."""
        raise NotImplementedError

    @property
    def test_mode(self) -> bool:
        return False


class StripePaymentGateway(PaymentGateway):
    """PaymentIntent-backed gateway. Without a real API key it runs in test mode."""

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key if api_key is not None else STRIPE_SECRET_KEY

    @property
    def test_mode(self) -> bool:
        return not is_stripe_configured(self.api_key)

    def create_order(self, amount_minor_units: int, currency: str, reference: str, metadata: dict) -> dict:
        if self.test_mode:
            order_id = f"test_pi_{uuid.uuid4().hex[:16]}"
            logger.info(f"Stripe not configured - created test order {order_id} for {reference}")
            return {"id": order_id, "client_secret": f"{order_id}_secret_test"}

        try:
            intent = stripe.PaymentIntent.create(
                amount=amount_minor_units,
                currency=currency.lower(),
                description=metadata.get("pass_name"),
                metadata={**{k: str(v) for k, v in metadata.items()}, "reference": reference},
                automatic_payment_methods={"enabled": True},
                idempotency_key=f"purchase-{reference}",
                api_key=self.api_key,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe error creating order for {reference}: {e}")
            raise GatewayError(f"Payment provider error: {e.user_message or 'order could not be created'}")

        logger.info(f"Created Stripe PaymentIntent {intent.id} for {reference}")
        return {"id": intent.id, "client_secret": intent.client_secret}

    def verify_payment(self, order_id: Optional[str], payment_id: str) -> bool:
        if self.test_mode:
            return True

        try:
            intent = stripe.PaymentIntent.retrieve(payment_id, api_key=self.api_key)
        except stripe.InvalidRequestError as e:
            logger.warning(f"Unknown PaymentIntent {payment_id}: {e}")
            return False
        except stripe.StripeError as e:
            logger.error(f"Stripe error retrieving PaymentIntent {payment_id}: {e}")
            raise GatewayError("Payment provider error while verifying payment")

        if order_id and intent.id != order_id:
            logger.warning(f"PaymentIntent {payment_id} does not belong to order {order_id}")
            return False
        return intent.status == "succeeded"


# Singleton instance
payment_gateway = StripePaymentGateway()


def get_payment_gateway() -> PaymentGateway:
    """Dependency injection helper."""
    return payment_gateway
