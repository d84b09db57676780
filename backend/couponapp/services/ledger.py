"""Coupon ledger: the system of record for issued coupons, one per phone key."""
import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.exc import DisconnectionError, IntegrityError, OperationalError
from sqlalchemy.orm import Session

from couponapp.core.config import settings
from couponapp.core.errors import DependencyError
from couponapp.models.coupon import Coupon, CouponStatus

logger = logging.getLogger(__name__)

# Attempts for a coupon insert when the store connection drops
ISSUE_MAX_ATTEMPTS = 2


@dataclass
class IssueResult:
    coupon: Coupon
    existing: bool


def find_by_phone(db: Session, phone_key: str) -> Optional[Coupon]:
    return db.query(Coupon).filter(Coupon.holder_phone == phone_key).first()


def find_by_id(db: Session, coupon_id: str) -> Optional[Coupon]:
    return db.query(Coupon).filter(Coupon.coupon_id == coupon_id).first()


def list_all(db: Session) -> List[Coupon]:
    return db.query(Coupon).order_by(Coupon.created_at, Coupon.coupon_id).all()


def issue(db: Session, phone_key: str, name: str, address: str) -> IssueResult:
    """
    Issue a coupon for a verified phone, or return the one it already has.

    Call only after the phone was verified. The unique index on holder_phone decides
    who wins when two approvals for the same phone race: the loser's insert fails,
    and it returns the winner's coupon.
    """
    existing = find_by_phone(db, phone_key)
    if existing:
        return IssueResult(coupon=existing, existing=True)

    for attempt in range(1, ISSUE_MAX_ATTEMPTS + 1):
        coupon = Coupon(
            coupon_id=str(uuid.uuid4()),
            holder_name=name,
            holder_phone=phone_key,
            holder_address=address,
            fixed_code=settings.FIXED_COUPON_CODE,
            status=CouponStatus.UNUSED,
        )
        db.add(coupon)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            winner = find_by_phone(db, phone_key)
            if winner is None:
                # Constraint other than the phone key; nothing to resolve to
                raise
            logger.info("Coupon for %s already issued by a concurrent request", phone_key)
            return IssueResult(coupon=winner, existing=True)
        except (OperationalError, DisconnectionError) as e:
            db.rollback()
            if attempt < ISSUE_MAX_ATTEMPTS:
                logger.warning("Store error issuing coupon for %s, retrying: %s", phone_key, e)
                continue
            logger.error("Store error issuing coupon for %s: %s", phone_key, e)
            raise DependencyError("Could not save the registration. Please try again.") from e
        db.refresh(coupon)
        logger.info("Coupon %s issued to %s", coupon.coupon_id, phone_key)
        return IssueResult(coupon=coupon, existing=False)
    raise DependencyError("Could not save the registration. Please try again.")
