"""
Base service utilities and shared imports.
All services should import from here for common functionality.
"""
import uuid
import json
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError, IntegrityError

from database import SessionLocal, get_db_session
from models_orm import (
    GymORM, PassTypeORM, UserORM, PurchasedPassORM, ProcessedWebhookEventORM,
    PAYMENT_PENDING, PAYMENT_SUCCEEDED, PAYMENT_FAILED,
    utcnow, new_id
)
from errors import (
    NotFoundError, InvalidInputError, UnauthorizedError, ForbiddenError,
    ConflictError, InvalidSignatureError, GatewayError, InternalError
)

# Re-export for convenience
__all__ = [
    'uuid', 'json', 'logging', 'datetime', 'timedelta', 'Optional',
    'SQLAlchemyError', 'IntegrityError',
    'SessionLocal', 'get_db_session',
    'GymORM', 'PassTypeORM', 'UserORM', 'PurchasedPassORM', 'ProcessedWebhookEventORM',
    'PAYMENT_PENDING', 'PAYMENT_SUCCEEDED', 'PAYMENT_FAILED',
    'utcnow', 'new_id', 'isoformat', 'is_uuid',
    'NotFoundError', 'InvalidInputError', 'UnauthorizedError', 'ForbiddenError',
    'ConflictError', 'InvalidSignatureError', 'GatewayError', 'InternalError',
]

logger = logging.getLogger("gym_pass")


def isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def is_uuid(value: str) -> bool:
    try:
        uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        return False
    return True
