"""FastAPI dependency: require_admin.

Usage in an admin router:
    @router.get("/stats")
    async def stats(admin: Annotated[str, Depends(require_admin)]):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.cr_common.errors import AdminAuthError
from src.cr_gateway.auth.jwt_handler import decode_admin_token

# auto_error=False so a missing header gets the same 401 as a bad token
bearer_scheme = HTTPBearer(auto_error=False)

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired admin token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Validate the admin Bearer token and return its subject."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _CREDENTIALS_EXCEPTION
    try:
        payload = decode_admin_token(credentials.credentials)
    except AdminAuthError:
        raise _CREDENTIALS_EXCEPTION from None
    return payload["sub"]
