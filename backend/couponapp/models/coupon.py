import enum

from sqlalchemy import CheckConstraint, Column, DateTime, Enum, String, Text
from sqlalchemy.sql import func

from couponapp.core.database import Base


class CouponStatus(str, enum.Enum):
    UNUSED = "UNUSED"
    USED = "USED"
    EXPIRED = "EXPIRED"


class Coupon(Base):
    __tablename__ = "coupons"
    __table_args__ = (
        CheckConstraint("(status = 'USED') = (used_at IS NOT NULL)", name="ck_coupons_used_at_iff_used"),
    )

    coupon_id = Column(String(36), primary_key=True, index=True)  # redemption token, encoded in the QR code
    holder_name = Column(String(255), nullable=False)
    holder_phone = Column(String(20), unique=True, index=True, nullable=False)  # normalized phone key
    holder_address = Column(Text, nullable=False)
    fixed_code = Column(String(50), nullable=False)
    status = Column(
        Enum(CouponStatus),
        default=CouponStatus.UNUSED,
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    used_at = Column(DateTime(timezone=True), nullable=True)
