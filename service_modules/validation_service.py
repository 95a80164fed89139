"""
Validation Service - staff-side entry checks for scanned passes.

Invalid passes only ever report a reason; payment and holder details are
returned for valid passes alone.
"""
from .base import (
    logging, Optional,
    SessionLocal, GymORM, PassTypeORM, UserORM, PurchasedPassORM,
    PAYMENT_PENDING, PAYMENT_SUCCEEDED,
    utcnow, isoformat, is_uuid,
    NotFoundError, InvalidInputError
)
from .qr_codes import read_qr_token
import math

logger = logging.getLogger("gym_pass")

REASON_PAYMENT_PENDING = "payment_pending"
REASON_PAYMENT_FAILED = "payment_failed"
REASON_INACTIVE = "inactive"
REASON_EXPIRED = "expired"
REASON_SUPERSEDED = "superseded"


def invalid_reason(purchased: PurchasedPassORM, now) -> Optional[str]:
    """None when the pass admits entry right now."""
    if purchased.payment_status == PAYMENT_PENDING:
        return REASON_PAYMENT_PENDING
    if purchased.payment_status != PAYMENT_SUCCEEDED:
        return REASON_PAYMENT_FAILED
    if not purchased.is_active:
        return REASON_INACTIVE
    if purchased.expiry_date <= now:
        return REASON_EXPIRED
    return None


def remaining_time(expiry_date, now) -> tuple:
    """(minutes, hours), both rounded up."""
    remaining_minutes = math.ceil((expiry_date - now).total_seconds() / 60)
    remaining_hours = math.ceil(remaining_minutes / 60)
    return remaining_minutes, remaining_hours


class ValidationService:
    """Service answering "may this pass holder enter?"."""

    def __init__(self, session_factory=None, clock=None, qr_secret: Optional[str] = None):
        self._session_factory = session_factory or SessionLocal
        self.clock = clock or utcnow
        self.qr_secret = qr_secret

    def validate(self, pass_id: str) -> dict:
        if not pass_id or not is_uuid(pass_id):
            raise InvalidInputError("Malformed pass ID", field="pass_id")
        return self._validate(pass_id)

    def validate_qr(self, token: str) -> dict:
        """Validate the scanned QR payload itself."""
        pass_id = read_qr_token(token, self.qr_secret)
        return self._validate(pass_id, token=token)

    def _validate(self, pass_id: str, token: Optional[str] = None) -> dict:
        db = self._session_factory()
        try:
            purchased = db.query(PurchasedPassORM).filter(PurchasedPassORM.id == pass_id).first()
            if not purchased:
                raise NotFoundError("Pass", pass_id)

            now = self.clock()
            reason = invalid_reason(purchased, now)
            if reason is None and token is not None and token != purchased.qr_code_value:
                reason = REASON_SUPERSEDED

            if reason is not None:
                logger.info(f"Validation of pass {pass_id}: invalid ({reason})")
                return {"valid": False, "reason": reason}

            pass_type = db.query(PassTypeORM).filter(PassTypeORM.id == purchased.pass_type_id).first()
            gym = db.query(GymORM).filter(GymORM.id == pass_type.gym_id).first()
            user = None
            if purchased.user_id:
                user = db.query(UserORM).filter(UserORM.id == purchased.user_id).first()

            remaining_minutes, remaining_hours = remaining_time(purchased.expiry_date, now)

            logger.info(f"Validation of pass {pass_id}: valid, {remaining_minutes} min remaining")
            return {
                "valid": True,
                "pass_details": {
                    "pass_id": purchased.id,
                    "pass_type": pass_type.name,
                    "gym_name": gym.name if gym else None,
                    "purchase_date": isoformat(purchased.purchase_date),
                    "expiry_date": isoformat(purchased.expiry_date),
                    "remaining_minutes": remaining_minutes,
                    "remaining_hours": remaining_hours,
                    "amount": f"{pass_type.price:.2f}",
                    "currency": pass_type.currency,
                    "status": purchased.payment_status,
                    "holder": {
                        "user_id": purchased.user_id,
                        "name": user.name if user else None,
                        "email": user.email if user else None,
                        "device_id": purchased.device_id,
                    },
                },
            }
        finally:
            db.close()


# Singleton instance
validation_service = ValidationService()


def get_validation_service() -> ValidationService:
    """Dependency injection helper."""
    return validation_service
