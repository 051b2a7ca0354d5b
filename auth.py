from typing import Annotated, Optional

import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from supabase import AuthApiError, Client

from db import get_client
from errors import BackendError

logger = structlog.get_logger()
security = HTTPBearer(auto_error=False)


class SessionUser(BaseModel):
    id: str
    email: Optional[str] = None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_user(client: Client, token: str) -> SessionUser:
    """Ask the identity provider who owns ``token``."""
    try:
        response = client.auth.get_user(token)
    except AuthApiError as e:
        if e.status and e.status >= 500:
            logger.error("identity_provider_failed", status=e.status, error=e.message)
            raise BackendError(f"Identity provider error: {e.message}") from e
        logger.warning("token_rejected", status=e.status, error=e.message)
        raise _unauthorized("Invalid or expired token")
    except Exception as e:
        logger.error("identity_provider_unreachable", error=str(e))
        raise BackendError(f"Identity provider unavailable: {e}") from e

    user = response.user if response else None
    if user is None:
        raise _unauthorized("Invalid or expired token")
    return SessionUser(id=str(user.id), email=user.email)


def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> SessionUser:
    if not credentials:
        raise _unauthorized("Not authenticated")
    return resolve_user(get_client(), credentials.credentials)


CurrentUser = Annotated[SessionUser, Depends(get_current_user)]
