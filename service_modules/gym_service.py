"""
Gym Service - gym lookup by scanned QR identifier.
"""
from .base import (
    logging, SQLAlchemyError, SessionLocal, GymORM, PassTypeORM,
    NotFoundError, InvalidInputError, InternalError
)
import re

logger = logging.getLogger("gym_pass")

QR_IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")


class GymService:
    def __init__(self, session_factory=None):
        self._session_factory = session_factory or SessionLocal

    def get_gym_by_qr_identifier(self, qr_identifier: str) -> dict:
        """Gym and its pass types, shortest duration first."""
        qr_identifier = (qr_identifier or "").strip()
        if not qr_identifier:
            raise InvalidInputError("QR identifier is required", field="qr_identifier")
        if not QR_IDENTIFIER_PATTERN.match(qr_identifier):
            raise InvalidInputError("QR identifier contains invalid characters", field="qr_identifier")

        db = self._session_factory()
        try:
            gym = db.query(GymORM).filter(GymORM.qr_identifier == qr_identifier).first()
            if not gym:
                raise NotFoundError("Gym", qr_identifier)

            pass_types = db.query(PassTypeORM).filter(
                PassTypeORM.gym_id == gym.id
            ).order_by(PassTypeORM.duration_days, PassTypeORM.price).all()

            return {
                "id": gym.id,
                "name": gym.name,
                "location": gym.location,
                "qr_identifier": gym.qr_identifier,
                "pass_types": [
                    {
                        "id": pt.id,
                        "name": pt.name,
                        "duration_days": pt.duration_days,
                        "price": f"{pt.price:.2f}",
                        "currency": pt.currency,
                    }
                    for pt in pass_types
                ],
            }
        except SQLAlchemyError as e:
            logger.error(f"Database error while fetching gym {qr_identifier}: {e}")
            raise InternalError("Failed to fetch gym details")
        finally:
            db.close()


# Singleton instance
gym_service = GymService()


def get_gym_service() -> GymService:
    """Dependency injection helper."""
    return gym_service
