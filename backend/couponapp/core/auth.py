from typing import Callable, Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from couponapp.core.deps import get_db
from couponapp.models.access_user import AccessRole
from couponapp.services.access import Principal, authenticate, require_role

security = HTTPBearer(auto_error=False)


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_auth_token: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> Principal:
    # Bearer header, or X-Auth-Token as sent by the scanner app
    token = credentials.credentials if credentials and credentials.credentials else x_auth_token
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    principal = authenticate(db, token)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


def require_roles(*roles: AccessRole) -> Callable[..., Principal]:
    """Dependency factory: the current principal, or 403 if its role is not in roles."""

    def _dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        return require_role(principal, *roles)

    return _dependency


get_current_admin = require_roles(AccessRole.ADMIN)
get_current_staff = require_roles(AccessRole.STAFF, AccessRole.ADMIN)
