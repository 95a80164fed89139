"""
User Service - profiles of users signed in through the identity provider.
"""
from .base import (
    logging, Optional, SQLAlchemyError, SessionLocal, UserORM,
    utcnow, isoformat, NotFoundError, InternalError
)

logger = logging.getLogger("gym_pass")


class UserService:
    def __init__(self, session_factory=None, clock=None):
        self._session_factory = session_factory or SessionLocal
        self.clock = clock or utcnow

    @staticmethod
    def _to_dict(user: UserORM) -> dict:
        return {
            "id": user.id,
            "email": user.email,
            "name": user.name,
            "phone_number": user.phone_number,
            "created_at": isoformat(user.created_at),
            "updated_at": isoformat(user.updated_at),
        }

    def upsert_user(
        self,
        user_id: str,
        email: Optional[str] = None,
        name: Optional[str] = None,
        phone_number: Optional[str] = None
    ) -> dict:
        """Create the profile or overwrite the fields that were provided."""
        db = self._session_factory()
        try:
            now = self.clock()
            user = db.query(UserORM).filter(UserORM.id == user_id).first()
            if not user:
                user = UserORM(id=user_id, created_at=now)
                db.add(user)
                logger.info(f"Creating profile for user {user_id}")

            if email is not None:
                user.email = email
            if name is not None:
                user.name = name
            if phone_number is not None:
                user.phone_number = phone_number
            user.updated_at = now

            db.commit()
            db.refresh(user)
            return self._to_dict(user)

        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error upserting user {user_id}: {e}")
            raise InternalError("Failed to save user profile")
        finally:
            db.close()

    def get_user(self, user_id: str) -> dict:
        db = self._session_factory()
        try:
            user = db.query(UserORM).filter(UserORM.id == user_id).first()
            if not user:
                raise NotFoundError("User", user_id)
            return self._to_dict(user)
        finally:
            db.close()


# Singleton instance
user_service = UserService()


def get_user_service() -> UserService:
    """Dependency injection helper."""
    return user_service
