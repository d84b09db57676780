"""One-time phone verification codes.

Per phone key the state is NONE or PENDING. A send moves to PENDING (replacing any
earlier code), a successful or expired check moves back to NONE. A wrong code leaves
the pending row in place so the user can retry until it expires.
"""
import enum
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from couponapp.core.config import settings
from couponapp.core.errors import SmsDispatchError
from couponapp.models.pending_verification import PendingVerification
from couponapp.services.sms import SmsDispatcher

logger = logging.getLogger(__name__)

CODE_MIN = 100000
CODE_MAX = 999999


class VerificationOutcome(str, enum.Enum):
    APPROVED = "approved"
    INVALID = "invalid"
    EXPIRED = "expired"


@dataclass
class OtpRequest:
    phone_key: str
    expires_at: datetime
    # Only set when SMS dispatch failed and OTP_REVEAL_ON_DISPATCH_FAILURE is on
    revealed_code: Optional[str] = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def generate_code() -> str:
    """Six digits, uniform over 100000-999999."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


def _upsert_pending(db: Session, phone_key: str, code: str, expires_at: datetime) -> None:
    values = {"phone_key": phone_key, "code": code, "expires_at": expires_at, "created_at": _utcnow()}
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(PendingVerification).values(**values)
    elif dialect == "sqlite":
        stmt = sqlite.insert(PendingVerification).values(**values)
    else:
        db.merge(PendingVerification(**values))
        return
    stmt = stmt.on_conflict_do_update(
        index_elements=[PendingVerification.phone_key],
        set_={"code": stmt.excluded.code, "expires_at": stmt.excluded.expires_at, "created_at": stmt.excluded.created_at},
    )
    db.execute(stmt)


def request_code(
    db: Session,
    phone_key: str,
    dispatcher: SmsDispatcher,
    now: Optional[datetime] = None,
) -> OtpRequest:
    """
    Store a fresh code for phone_key and send it by SMS.

    The code is committed before dispatch so that whatever reaches the phone is
    already checkable. On dispatch failure the error propagates unless the
    demo-only reveal flag is on, in which case the code is returned to the caller.
    """
    now = now or _utcnow()
    code = generate_code()
    expires_at = now + timedelta(minutes=settings.OTP_EXPIRE_MINUTES)
    _upsert_pending(db, phone_key, code, expires_at)
    db.commit()
    logger.info("Verification code stored for %s (expires in %s min)", phone_key, settings.OTP_EXPIRE_MINUTES)

    try:
        dispatcher.send(phone_key, code)
    except SmsDispatchError as e:
        if not settings.OTP_REVEAL_ON_DISPATCH_FAILURE:
            logger.error("SMS dispatch failed for %s: %s", phone_key, e.message)
            raise
        logger.warning(
            "SMS dispatch failed for %s (provider code %s); returning code in response (reveal flag on)",
            phone_key,
            e.provider_code,
        )
        return OtpRequest(phone_key=phone_key, expires_at=expires_at, revealed_code=code)
    return OtpRequest(phone_key=phone_key, expires_at=expires_at)


def check_code(
    db: Session,
    phone_key: str,
    submitted: str,
    now: Optional[datetime] = None,
) -> VerificationOutcome:
    now = now or _utcnow()
    pending = db.query(PendingVerification).filter(PendingVerification.phone_key == phone_key).first()
    if not pending:
        return VerificationOutcome.INVALID

    if now >= _as_utc(pending.expires_at):
        # Only the expired row; a code re-sent since the read must survive
        db.query(PendingVerification).filter(
            PendingVerification.phone_key == phone_key,
            PendingVerification.expires_at <= now,
        ).delete(synchronize_session=False)
        db.commit()
        logger.info("Verification code for %s expired", phone_key)
        return VerificationOutcome.EXPIRED

    if submitted != pending.code:
        logger.info("Wrong verification code for %s", phone_key)
        return VerificationOutcome.INVALID

    # Consume: only the request whose delete removes the row is approved
    deleted = (
        db.query(PendingVerification)
        .filter(PendingVerification.phone_key == phone_key, PendingVerification.code == submitted)
        .delete(synchronize_session=False)
    )
    db.commit()
    if deleted != 1:
        return VerificationOutcome.INVALID
    logger.info("Phone %s verified", phone_key)
    return VerificationOutcome.APPROVED


def purge_expired(db: Session, now: Optional[datetime] = None) -> int:
    """Delete every pending code past its expiry. Returns number removed."""
    now = now or _utcnow()
    removed = (
        db.query(PendingVerification)
        .filter(PendingVerification.expires_at <= now)
        .delete(synchronize_session=False)
    )
    db.commit()
    if removed:
        logger.info("Purged %s expired verification codes", removed)
    return removed
