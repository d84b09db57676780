from couponapp.core.database import Base
from couponapp.models.access_user import AccessRole, AccessUser
from couponapp.models.coupon import Coupon, CouponStatus
from couponapp.models.pending_verification import PendingVerification

__all__ = [
    "Base",
    "AccessRole",
    "AccessUser",
    "Coupon",
    "CouponStatus",
    "PendingVerification",
]
