from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt

from fastapi import Request
import logging

from config import SECRET_KEY, ALGORITHM
from errors import UnauthorizedError

ACCESS_TOKEN_EXPIRE_MINUTES = 30

logger = logging.getLogger("gym_pass")


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None, secret_key: str = None):
    """Issue a bearer token. The identity provider does this in production; used by tooling and tests."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, secret_key or SECRET_KEY, algorithm=ALGORITHM)


def decode_user_id(token: str, secret_key: str = None) -> str:
    """Return the subject of a bearer token or raise UnauthorizedError."""
    try:
        payload = jwt.decode(token, secret_key or SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.info(f"AUTH: JWT validation error: {e}")
        raise UnauthorizedError("Could not validate credentials")

    user_id = payload.get("sub")
    if not user_id:
        logger.info("AUTH: Token missing 'sub'")
        raise UnauthorizedError("Could not validate credentials")
    return user_id


def _bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[len("Bearer "):].strip() or None
    return None


async def get_optional_user_id(request: Request) -> Optional[str]:
    """Caller's user id, or None for anonymous (device-scoped) callers.

    A token that is present but invalid is still rejected.
    """
    token = _bearer_token(request)
    if token is None:
        return None
    return decode_user_id(token)


async def get_current_user_id(request: Request) -> str:
    """Caller's user id; 401 when no valid bearer token is presented."""
    token = _bearer_token(request)
    if token is None:
        raise UnauthorizedError()
    return decode_user_id(token)
