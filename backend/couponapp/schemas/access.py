from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from couponapp.models.access_user import AccessRole
from couponapp.models.coupon import CouponStatus


class LoginSubmit(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    token: str
    role: AccessRole
    token_type: str = "bearer"


class AccessUserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=8)
    role: AccessRole = AccessRole.STAFF


class AccessUserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    username: str
    role: AccessRole
    created_at: Optional[datetime] = None


class ValidateSubmit(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)
    coupon_id: Optional[str] = Field(default=None, alias="couponId")


class ValidateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    status: str = "VALIDATED"
    holder_name: str = Field(alias="holderName")
    message: str


class CouponResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    coupon_id: str
    holder_name: str
    holder_phone: str
    holder_address: str
    fixed_code: str
    status: CouponStatus
    created_at: Optional[datetime] = None
    used_at: Optional[datetime] = None
