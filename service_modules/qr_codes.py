"""
QR payloads for purchased passes.

A paid pass carries a compact HS256 token {"sub": pass_id, "jti": nonce, "typ": "gym_pass"}
signed with the server-held QR secret. Expiry is not embedded; it is read from the
database whenever the code is validated.
"""
from .base import uuid, Optional, InvalidInputError
from config import QR_SIGNING_SECRET, ALGORITHM
from jose import JWTError, jwt
import io
import secrets
import qrcode

QR_TOKEN_TYPE = "gym_pass"
PLACEHOLDER_PREFIX = "pending_"


def placeholder_qr_value() -> str:
    """Opaque, unique value stored until the pass is paid. Never accepted by validation."""
    return f"{PLACEHOLDER_PREFIX}{uuid.uuid4().hex}"


def issue_qr_token(pass_id: str, secret: Optional[str] = None) -> str:
    claims = {
        "sub": pass_id,
        "jti": secrets.token_urlsafe(16),
        "typ": QR_TOKEN_TYPE,
    }
    return jwt.encode(claims, secret or QR_SIGNING_SECRET, algorithm=ALGORITHM)


def read_qr_token(token: str, secret: Optional[str] = None) -> str:
    """Return the pass id a QR token was issued for.

    Raises InvalidInputError for anything that is not a token we signed.
    """
    if not token or token.startswith(PLACEHOLDER_PREFIX):
        raise InvalidInputError("Malformed QR code", field="qr")
    try:
        claims = jwt.decode(token, secret or QR_SIGNING_SECRET, algorithms=[ALGORITHM])
    except JWTError:
        raise InvalidInputError("Malformed QR code", field="qr")

    if claims.get("typ") != QR_TOKEN_TYPE or not claims.get("sub"):
        raise InvalidInputError("Malformed QR code", field="qr")
    return claims["sub"]


def render_qr_png(data: str) -> io.BytesIO:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    img_byte_arr = io.BytesIO()
    img.save(img_byte_arr, format='PNG')
    img_byte_arr.seek(0)
    return img_byte_arr
