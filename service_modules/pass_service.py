"""
Pass Service - purchase, payment settlement and listing of purchased passes.

All transitions to "succeeded" go through _settle_payment, whichever path
(client confirmation or provider webhook) reports the payment first.
"""
from .base import (
    logging, timedelta, Optional,
    SQLAlchemyError, IntegrityError,
    SessionLocal, GymORM, PassTypeORM, UserORM, PurchasedPassORM,
    PAYMENT_PENDING, PAYMENT_SUCCEEDED, PAYMENT_FAILED,
    utcnow, new_id, isoformat,
    NotFoundError, InvalidInputError, UnauthorizedError, ForbiddenError,
    ConflictError, GatewayError, InternalError
)
from .payment_gateway import PaymentGateway, get_payment_gateway
from .qr_codes import placeholder_qr_value, issue_qr_token, render_qr_png
from config import ALLOW_MULTIPLE_ACTIVE_PASSES, STRIPE_PUBLISHABLE_KEY
from decimal import Decimal, ROUND_HALF_UP
from sqlalchemy import and_, or_

logger = logging.getLogger("gym_pass")


def to_minor_units(price) -> int:
    """50.00 -> 5000"""
    return int((Decimal(price) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PassService:
    """Service for the purchased-pass lifecycle."""

    def __init__(
        self,
        session_factory=None,
        gateway: Optional[PaymentGateway] = None,
        clock=None,
        qr_secret: Optional[str] = None,
        allow_multiple_active: Optional[bool] = None,
        publishable_key: Optional[str] = None,
    ):
        self._session_factory = session_factory or SessionLocal
        self.gateway = gateway or get_payment_gateway()
        self.clock = clock or utcnow
        self.qr_secret = qr_secret
        self.allow_multiple_active = ALLOW_MULTIPLE_ACTIVE_PASSES if allow_multiple_active is None else allow_multiple_active
        self.publishable_key = publishable_key if publishable_key is not None else STRIPE_PUBLISHABLE_KEY

    # --- SERIALIZATION ---

    @staticmethod
    def serialize_pass(purchased: PurchasedPassORM, pass_type: Optional[PassTypeORM] = None) -> dict:
        paid = purchased.payment_status == PAYMENT_SUCCEEDED
        return {
            "id": purchased.id,
            "pass_type_id": purchased.pass_type_id,
            "pass_type_name": pass_type.name if pass_type else None,
            "duration_days": pass_type.duration_days if pass_type else None,
            "user_id": purchased.user_id,
            "device_id": purchased.device_id,
            "purchase_date": isoformat(purchased.purchase_date),
            "expiry_date": isoformat(purchased.expiry_date),
            "payment_status": purchased.payment_status,
            # The placeholder stored while pending is never handed out
            "qr_code_value": purchased.qr_code_value if paid else None,
            "is_active": bool(purchased.is_active),
        }

    # --- PURCHASE ---

    def create_pending_purchase(self, pass_type_id: str, user_id: Optional[str] = None, device_id: Optional[str] = None) -> dict:
        """Create a pending pass and open a gateway order for it."""
        if not pass_type_id:
            raise InvalidInputError("Pass type ID is required", field="pass_type_id")

        db = self._session_factory()
        try:
            row = db.query(PassTypeORM, GymORM).join(
                GymORM, GymORM.id == PassTypeORM.gym_id
            ).filter(PassTypeORM.id == pass_type_id).first()

            if not row:
                raise NotFoundError("Pass type", pass_type_id)
            pass_type, gym = row

            now = self.clock()

            if not self.allow_multiple_active and (user_id or device_id):
                if self._has_valid_pass_at_gym(db, gym.id, user_id, device_id, now):
                    raise ConflictError("An active pass for this gym already exists")

            # Users may buy before their profile was reported
            if user_id and not db.query(UserORM).filter(UserORM.id == user_id).first():
                db.add(UserORM(id=user_id, created_at=now, updated_at=now))

            pass_id = new_id()
            purchased = PurchasedPassORM(
                id=pass_id,
                pass_type_id=pass_type.id,
                user_id=user_id,
                device_id=device_id,
                purchase_date=now,
                expiry_date=now + timedelta(days=pass_type.duration_days),
                payment_status=PAYMENT_PENDING,
                qr_code_value=placeholder_qr_value(),
                is_active=False,
                updated_at=now
            )
            db.add(purchased)
            db.commit()

            amount = to_minor_units(pass_type.price)
            currency = pass_type.currency
            logger.info(f"Created pending pass {pass_id} for pass type {pass_type.id} ({amount} {currency})")

            try:
                order = self.gateway.create_order(
                    amount,
                    currency,
                    pass_id,
                    {
                        "purchased_pass_id": pass_id,
                        "gym_name": gym.name,
                        "pass_name": pass_type.name,
                    }
                )
            except GatewayError:
                # Compensate: the pending record would otherwise be orphaned
                purchased.payment_status = PAYMENT_FAILED
                purchased.updated_at = self.clock()
                db.commit()
                logger.warning(f"Order creation failed, marked pass {pass_id} as failed")
                raise

            purchased.payment_intent_id = order["id"]
            purchased.updated_at = self.clock()
            db.commit()

            logger.info(f"Opened order {order['id']} for pass {pass_id}")

            return {
                "pass_id": pass_id,
                "order_id": order["id"],
                "client_secret": order.get("client_secret"),
                "amount": amount,
                "currency": currency,
                "publishable_key": self.publishable_key,
                "test_mode": self.gateway.test_mode,
            }

        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error creating purchase for pass type {pass_type_id}: {e}")
            raise InternalError("Failed to create purchase")
        finally:
            db.close()

    def _has_valid_pass_at_gym(self, db, gym_id: str, user_id: Optional[str], device_id: Optional[str], now) -> bool:
        scope = []
        if user_id:
            scope.append(PurchasedPassORM.user_id == user_id)
        if device_id:
            scope.append(PurchasedPassORM.device_id == device_id)

        existing = db.query(PurchasedPassORM).join(
            PassTypeORM, PassTypeORM.id == PurchasedPassORM.pass_type_id
        ).filter(
            PassTypeORM.gym_id == gym_id,
            PurchasedPassORM.is_active == True,
            PurchasedPassORM.payment_status == PAYMENT_SUCCEEDED,
            PurchasedPassORM.expiry_date > now,
            or_(*scope)
        ).first()
        return existing is not None

    # --- PAYMENT SETTLEMENT ---

    def _settle_payment(self, db, purchased: PurchasedPassORM, payment_id: str, device_id: Optional[str] = None) -> bool:
        """Move a pass to succeeded. Returns False when it already was.

        The conditional update makes the first success win; later calls leave
        the issued QR code and expiry window untouched.
        """
        pass_type = db.query(PassTypeORM).filter(PassTypeORM.id == purchased.pass_type_id).first()
        now = self.clock()

        values = {
            PurchasedPassORM.payment_status: PAYMENT_SUCCEEDED,
            PurchasedPassORM.payment_intent_id: payment_id,
            PurchasedPassORM.qr_code_value: issue_qr_token(purchased.id, self.qr_secret),
            # Window starts at confirmation, not at order creation
            PurchasedPassORM.expiry_date: now + timedelta(days=pass_type.duration_days),
            PurchasedPassORM.is_active: True,
            PurchasedPassORM.paid_at: now,
            PurchasedPassORM.updated_at: now,
        }
        if device_id and not purchased.device_id:
            values[PurchasedPassORM.device_id] = device_id

        updated = db.query(PurchasedPassORM).filter(
            PurchasedPassORM.id == purchased.id,
            PurchasedPassORM.payment_status != PAYMENT_SUCCEEDED
        ).update(values, synchronize_session=False)
        db.commit()

        if updated:
            logger.info(f"Payment {payment_id} settled pass {purchased.id}")
        else:
            logger.info(f"Pass {purchased.id} was already settled, keeping original QR code")
        return bool(updated)

    def confirm_payment(
        self,
        purchased_pass_id: str,
        external_payment_id: str,
        caller_user_id: Optional[str] = None,
        device_id: Optional[str] = None
    ) -> dict:
        """Client-reported payment success. Safe to repeat."""
        if not purchased_pass_id or not external_payment_id:
            raise InvalidInputError("Missing required fields: pass_id and payment_id")

        db = self._session_factory()
        try:
            purchased = db.query(PurchasedPassORM).filter(
                PurchasedPassORM.id == purchased_pass_id
            ).first()

            if not purchased:
                raise NotFoundError("Pass", purchased_pass_id)

            self._check_owner(purchased, caller_user_id)

            if purchased.payment_status != PAYMENT_SUCCEEDED:
                if purchased.payment_status == PAYMENT_FAILED and not purchased.payment_intent_id:
                    raise InvalidInputError("Purchase was not completed; start a new purchase", field="pass_id")

                if not self.gateway.verify_payment(purchased.payment_intent_id, external_payment_id):
                    raise InvalidInputError("Payment has not succeeded", field="payment_id")

                settled_id = external_payment_id
                if self.gateway.test_mode and purchased.payment_intent_id:
                    # Test payments are not checked against the order; keep the id webhooks report
                    settled_id = purchased.payment_intent_id

                self._settle_payment(db, purchased, settled_id, device_id)

            return self._load_serialized(db, purchased_pass_id)

        except IntegrityError as e:
            db.rollback()
            logger.warning(f"Payment {external_payment_id} is already bound to another pass: {e}")
            raise ConflictError("Payment already used for another pass")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error confirming payment for pass {purchased_pass_id}: {e}")
            raise InternalError("Failed to confirm payment")
        finally:
            db.close()

    def mark_order_paid(self, order_id: str) -> Optional[dict]:
        """Provider-reported capture for an order. None when no pass matches."""
        db = self._session_factory()
        try:
            purchased = db.query(PurchasedPassORM).filter(
                PurchasedPassORM.payment_intent_id == order_id
            ).first()

            if not purchased:
                return None

            self._settle_payment(db, purchased, order_id)
            return self._load_serialized(db, purchased.id)

        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error settling order {order_id}: {e}")
            raise InternalError("Failed to record payment")
        finally:
            db.close()

    def mark_order_failed(self, order_id: str) -> Optional[dict]:
        """Provider-reported failure. Only a pending pass moves to failed."""
        db = self._session_factory()
        try:
            purchased = db.query(PurchasedPassORM).filter(
                PurchasedPassORM.payment_intent_id == order_id
            ).first()

            if not purchased:
                return None

            updated = db.query(PurchasedPassORM).filter(
                PurchasedPassORM.id == purchased.id,
                PurchasedPassORM.payment_status == PAYMENT_PENDING
            ).update({
                PurchasedPassORM.payment_status: PAYMENT_FAILED,
                PurchasedPassORM.updated_at: self.clock(),
            }, synchronize_session=False)
            db.commit()

            if updated:
                logger.info(f"Order {order_id} failed, pass {purchased.id} marked failed")
            return self._load_serialized(db, purchased.id)

        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error recording failed order {order_id}: {e}")
            raise InternalError("Failed to record payment failure")
        finally:
            db.close()

    # --- READS ---

    def get_pass_status(self, pass_id: str, caller_user_id: Optional[str] = None) -> dict:
        db = self._session_factory()
        try:
            purchased = db.query(PurchasedPassORM).filter(PurchasedPassORM.id == pass_id).first()
            if not purchased:
                raise NotFoundError("Pass", pass_id)

            self._check_owner(purchased, caller_user_id)

            paid = purchased.payment_status == PAYMENT_SUCCEEDED
            return {
                "pass_id": purchased.id,
                "status": purchased.payment_status,
                "qr_code_value": purchased.qr_code_value if paid else None,
                "expiry_date": isoformat(purchased.expiry_date) if paid else None,
            }
        finally:
            db.close()

    def get_pass_qr_png(self, pass_id: str, caller_user_id: Optional[str] = None):
        db = self._session_factory()
        try:
            purchased = db.query(PurchasedPassORM).filter(PurchasedPassORM.id == pass_id).first()
            if not purchased or purchased.payment_status != PAYMENT_SUCCEEDED:
                raise NotFoundError("Paid pass", pass_id)

            self._check_owner(purchased, caller_user_id)
            return render_qr_png(purchased.qr_code_value)
        finally:
            db.close()

    def get_active_passes(self, device_id: Optional[str] = None, user_id: Optional[str] = None) -> list:
        """Currently valid passes of one device and/or user, newest first."""
        if not device_id and not user_id:
            raise InvalidInputError("A device_id or an authenticated user is required")

        scope = []
        if device_id:
            # A device only sees anonymous passes and the caller's own
            owners = [PurchasedPassORM.user_id.is_(None)]
            if user_id:
                owners.append(PurchasedPassORM.user_id == user_id)
            scope.append(and_(PurchasedPassORM.device_id == device_id, or_(*owners)))
        if user_id:
            scope.append(PurchasedPassORM.user_id == user_id)

        db = self._session_factory()
        try:
            now = self.clock()
            rows = db.query(PurchasedPassORM, PassTypeORM).join(
                PassTypeORM, PassTypeORM.id == PurchasedPassORM.pass_type_id
            ).filter(
                PurchasedPassORM.is_active == True,
                PurchasedPassORM.payment_status == PAYMENT_SUCCEEDED,
                PurchasedPassORM.expiry_date > now,
                or_(*scope)
            ).order_by(PurchasedPassORM.purchase_date.desc()).all()

            return [self.serialize_pass(purchased, pass_type) for purchased, pass_type in rows]
        finally:
            db.close()

    # --- HELPERS ---

    def _load_serialized(self, db, pass_id: str) -> dict:
        purchased, pass_type = db.query(PurchasedPassORM, PassTypeORM).join(
            PassTypeORM, PassTypeORM.id == PurchasedPassORM.pass_type_id
        ).filter(PurchasedPassORM.id == pass_id).one()
        return self.serialize_pass(purchased, pass_type)

    @staticmethod
    def _check_owner(purchased: PurchasedPassORM, caller_user_id: Optional[str]):
        """Passes bought by a signed-in user are only visible to that user."""
        if not purchased.user_id:
            return
        if not caller_user_id:
            raise UnauthorizedError()
        if caller_user_id != purchased.user_id:
            raise ForbiddenError("Pass belongs to another user")


# Singleton instance
pass_service = PassService()


def get_pass_service() -> PassService:
    """Dependency injection helper."""
    return pass_service
