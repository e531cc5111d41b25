"""Admin JWT creation and verification.

Only the admin surface (stats, manual scheduler trigger) is authenticated.
Players are identified by an opaque wallet key and never log in here.

HS256 with one shared ADMIN_JWT_SECRET. No revocation: an issued token is
valid until it expires, so keep ADMIN_TOKEN_EXPIRE_MINUTES modest.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.cr_common.errors import AdminAuthError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_ADMIN_EXPIRE = timedelta(minutes=settings.ADMIN_TOKEN_EXPIRE_MINUTES)
_ADMIN_TYPE = "admin"


def create_admin_token(subject: str, expires_in: timedelta | None = None) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": subject,
        "type": _ADMIN_TYPE,
        "iat": now,
        "exp": now + (expires_in if expires_in is not None else _ADMIN_EXPIRE),
    }
    return str(jwt.encode(payload, settings.ADMIN_JWT_SECRET, algorithm=_ALGORITHM))


def decode_admin_token(token: str) -> dict[str, str]:
    """Decode and validate an admin token.

    Raises:
        AdminAuthError: bad signature, expired, or not an admin-type token.
    """
    try:
        payload = jwt.decode(
            token,
            settings.ADMIN_JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise AdminAuthError() from None

    if payload.get("type") != _ADMIN_TYPE or not payload.get("sub"):
        raise AdminAuthError()
    return payload
