"""Staff and admin accounts: login, token checks, role gates."""
import logging
import uuid
from dataclasses import dataclass
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from couponapp.core.errors import ConflictError, ForbiddenError
from couponapp.core.security import (
    create_access_token,
    decode_access_token,
    dummy_password_hash,
    get_password_hash,
    verify_password,
)
from couponapp.models.access_user import AccessRole, AccessUser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    id: str
    username: str
    role: AccessRole


def create_access_user(db: Session, username: str, password: str, role: AccessRole) -> AccessUser:
    if db.query(AccessUser).filter(AccessUser.username == username).first():
        raise ConflictError("Username already exists")
    user = AccessUser(
        id=str(uuid.uuid4()),
        username=username,
        hashed_password=get_password_hash(password),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Access user %s created with role %s", username, role.value)
    return user


def issue_token(user: AccessUser) -> str:
    return create_access_token(subject=user.id, username=user.username, role=user.role.value)


def login(db: Session, username: str, password: str) -> Optional[Tuple[AccessUser, str]]:
    user = db.query(AccessUser).filter(AccessUser.username == username).first()
    if user is None:
        verify_password(password, dummy_password_hash())
        logger.info("Failed login for %s", username)
        return None
    if not verify_password(password, user.hashed_password):
        logger.info("Failed login for %s", username)
        return None
    return user, issue_token(user)


def authenticate(db: Session, token: str) -> Optional[Principal]:
    """Principal for a valid token whose user still exists with the role it claims."""
    claims = decode_access_token(token)
    if claims is None:
        return None
    user = db.query(AccessUser).filter(AccessUser.id == claims.subject).first()
    if not user or user.role.value != claims.role:
        return None
    return Principal(id=user.id, username=user.username, role=user.role)


def require_role(principal: Principal, *roles: AccessRole) -> Principal:
    if principal.role not in roles:
        raise ForbiddenError("Access denied. Requires role: " + " or ".join(r.value for r in roles))
    return principal
