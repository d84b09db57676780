from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func

from couponapp.core.database import Base


class PendingVerification(Base):
    __tablename__ = "pending_verifications"

    # One live code per phone; a new send overwrites the row
    phone_key = Column(String(20), primary_key=True)
    code = Column(String(6), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)  # UTC
    created_at = Column(DateTime(timezone=True), server_default=func.now())
