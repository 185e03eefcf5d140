from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import ExpiredSignatureError, JWTError
from sqlalchemy.orm import Session

from app.auth.tenancy import Principal
from app.auth.utils import decode_access_token
from app.common.db import get_db
from app.common.models import Role, User
from app.core.errors import ForbiddenError, UnauthorizedError
from app.core.roles import RoleName

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def _principal_from_token(request: Request, token: str, db: Session) -> Principal:
    try:
        payload = decode_access_token(token)
    except ExpiredSignatureError:
        raise UnauthorizedError("Token has expired", error_code="token_expired")
    except JWTError as e:
        logger.info(f"Rejected bearer token: {e}")
        raise UnauthorizedError("Invalid token")

    user_id = payload.get("id")
    if payload.get("type") != "access" or not isinstance(user_id, int):
        raise UnauthorizedError("Invalid token payload")

    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise UnauthorizedError("User not found or inactive")

    role = db.get(Role, user.role_id)
    request.state.user_id = user.id

    return Principal(
        id=user.id,
        email=user.email,
        role=RoleName.parse(role.name if role else None),
        church_id=user.church_id,
        full_name=user.full_name,
    )


def get_current_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Principal:
    """Authenticate the bearer token and resolve the calling user."""
    if not credentials:
        raise UnauthorizedError("Not authenticated")
    return _principal_from_token(request, credentials.credentials, db)


def get_optional_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[Principal]:
    if not credentials:
        return None
    return _principal_from_token(request, credentials.credentials, db)


def require_roles(*roles: RoleName) -> Callable[..., Principal]:
    """Build a dependency that admits only the given roles.

    The cross-tenant role is always admitted.
    """
    allowed = frozenset(roles)

    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.has_cross_tenant_bypass or principal.role in allowed:
            return principal
        raise ForbiddenError("Insufficient role for this operation")

    return dependency
