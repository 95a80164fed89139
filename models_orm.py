from sqlalchemy import Column, Integer, String, Boolean, Numeric, DateTime, ForeignKey
from database import Base
from datetime import datetime, timezone
import uuid


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


# Payment status values for PurchasedPassORM.payment_status
PAYMENT_PENDING = "pending"
PAYMENT_SUCCEEDED = "succeeded"
PAYMENT_FAILED = "failed"


# --- CATALOG ---

class GymORM(Base):
    """A venue discovered by scanning its QR identifier."""
    __tablename__ = "gyms"

    id = Column(String, primary_key=True, index=True, default=new_id)
    name = Column(String, nullable=False)
    location = Column(String, nullable=True)
    qr_identifier = Column(String, unique=True, index=True, nullable=False)  # e.g. "veers-gym-main"

    created_at = Column(DateTime, default=utcnow)


class PassTypeORM(Base):
    """Purchasable offering of a gym (duration + price)."""
    __tablename__ = "pass_types"

    id = Column(String, primary_key=True, index=True, default=new_id)
    gym_id = Column(String, ForeignKey("gyms.id"), index=True, nullable=False)

    name = Column(String, nullable=False)  # e.g. "7 Day Pass"
    duration_days = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)  # Major units, e.g. 50.00
    currency = Column(String(3), default="INR")

    created_at = Column(DateTime, default=utcnow)


# --- USERS ---

class UserORM(Base):
    """Profile of a signed-in user. id is the identity provider's subject."""
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, nullable=True, index=True)
    name = Column(String, nullable=True)
    phone_number = Column(String, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)


# --- PURCHASES ---

class PurchasedPassORM(Base):
    """One holder's instance of a pass type, with payment and validity state."""
    __tablename__ = "purchased_passes"

    id = Column(String, primary_key=True, index=True, default=new_id)
    pass_type_id = Column(String, ForeignKey("pass_types.id"), index=True, nullable=False)
    user_id = Column(String, ForeignKey("users.id"), index=True, nullable=True)
    device_id = Column(String, index=True, nullable=True)

    purchase_date = Column(DateTime, default=utcnow, index=True)
    expiry_date = Column(DateTime, nullable=False)

    # Payment state: pending -> succeeded | failed
    payment_status = Column(String, default=PAYMENT_PENDING, index=True)
    payment_intent_id = Column(String, unique=True, nullable=True, index=True)  # Gateway order / payment id
    paid_at = Column(DateTime, nullable=True)

    # Placeholder while pending, signed QR token once paid
    qr_code_value = Column(String, unique=True, nullable=False)
    is_active = Column(Boolean, default=False, index=True)  # True only once payment succeeded

    updated_at = Column(DateTime, default=utcnow)


class ProcessedWebhookEventORM(Base):
    """Provider events already handled, so redelivery is a no-op."""
    __tablename__ = "processed_webhook_events"

    id = Column(String, primary_key=True)  # Provider event id (evt_xxx)
    event_type = Column(String, nullable=True)
    received_at = Column(DateTime, default=utcnow)
