import enum

from sqlalchemy import Column, DateTime, Enum, String
from sqlalchemy.sql import func

from couponapp.core.database import Base


class AccessRole(str, enum.Enum):
    STAFF = "STAFF"
    ADMIN = "ADMIN"


class AccessUser(Base):
    __tablename__ = "access_users"

    id = Column(String(36), primary_key=True, index=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(Enum(AccessRole), nullable=False, default=AccessRole.STAFF)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
