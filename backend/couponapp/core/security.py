from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

import bcrypt
from jose import JWTError, jwt

from couponapp.core.config import settings

# Bcrypt limit is 72 bytes; truncate to avoid errors
BCRYPT_MAX_PASSWORD_BYTES = 72
JWT_ALGORITHM = "HS256"


@dataclass(frozen=True)
class TokenClaims:
    """Verified contents of an access token."""

    subject: str  # access user id
    username: str
    role: str
    expires_at: datetime


def _encode_password(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_PASSWORD_BYTES]


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(_encode_password(plain_password), hashed_password.encode("utf-8"))


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(_encode_password(password), bcrypt.gensalt()).decode("utf-8")


@lru_cache(maxsize=1)
def dummy_password_hash() -> str:
    # Checked against when the username is unknown, so both paths cost one bcrypt round
    return get_password_hash("unknown-user-placeholder")


def create_access_token(
    subject: str,
    username: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {"sub": subject, "username": username, "role": role, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[TokenClaims]:
    """Claims of a correctly signed, unexpired token that carries every claim; else None."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
    sub, username, role, exp = (payload.get(k) for k in ("sub", "username", "role", "exp"))
    if not all(isinstance(v, str) and v for v in (sub, username, role)) or not isinstance(exp, (int, float)):
        return None
    return TokenClaims(
        subject=sub,
        username=username,
        role=role,
        expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
    )
