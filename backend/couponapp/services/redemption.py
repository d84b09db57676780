import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from couponapp.models.access_user import AccessRole
from couponapp.models.coupon import Coupon, CouponStatus
from couponapp.services.access import Principal
from couponapp.services.ledger import find_by_id

logger = logging.getLogger(__name__)

REDEEMER_ROLES = (AccessRole.STAFF, AccessRole.ADMIN)


class RedemptionOutcome(str, enum.Enum):
    REDEEMED = "redeemed"
    NOT_FOUND = "not_found"
    ALREADY_USED = "already_used"
    EXPIRED = "expired"
    FORBIDDEN = "forbidden"


@dataclass
class RedemptionResult:
    outcome: RedemptionOutcome
    holder_name: Optional[str] = None


def redeem(
    db: Session,
    coupon_id: str,
    principal: Principal,
    now: Optional[datetime] = None,
) -> RedemptionResult:
    """
    Mark a coupon used, at most once.

    The flip is one conditional UPDATE (status must still be UNUSED), so of two
    concurrent scans only one changes the row; the other reads it back as used.
    """
    if principal.role not in REDEEMER_ROLES:
        return RedemptionResult(RedemptionOutcome.FORBIDDEN)

    now = now or datetime.now(timezone.utc)
    updated = (
        db.query(Coupon)
        .filter(Coupon.coupon_id == coupon_id, Coupon.status == CouponStatus.UNUSED)
        .update({Coupon.status: CouponStatus.USED, Coupon.used_at: now}, synchronize_session=False)
    )
    db.commit()

    coupon = find_by_id(db, coupon_id)
    if updated == 1 and coupon is not None:
        logger.info("Coupon %s redeemed by %s", coupon_id, principal.username)
        return RedemptionResult(RedemptionOutcome.REDEEMED, holder_name=coupon.holder_name)
    if coupon is None:
        return RedemptionResult(RedemptionOutcome.NOT_FOUND)
    if coupon.status == CouponStatus.EXPIRED:
        return RedemptionResult(RedemptionOutcome.EXPIRED, holder_name=coupon.holder_name)
    logger.info("Coupon %s already used (scan by %s refused)", coupon_id, principal.username)
    return RedemptionResult(RedemptionOutcome.ALREADY_USED, holder_name=coupon.holder_name)
