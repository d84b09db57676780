from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from couponapp.services.registration_flow import RegistrationPhase


class SendOtpSubmit(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)
    name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=1, max_length=40)
    address: str = Field(..., min_length=1)


class SendOtpResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    phone: str
    status: str = "pending"
    phase: RegistrationPhase = RegistrationPhase.AWAITING_CODE
    message: str
    # Demo/test deployments only (OTP_REVEAL_ON_DISPATCH_FAILURE)
    otp_code: Optional[str] = Field(default=None, alias="otpCode")


class CheckOtpSubmit(BaseModel):
    phone: str = Field(..., min_length=1, max_length=40)
    code: str = Field(..., min_length=1, max_length=10)  # compared as sent, never trimmed
    name: str = Field(..., min_length=1, max_length=255)
    address: str = Field(..., min_length=1)

    @field_validator("phone", "name", "address", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v


class CheckOtpResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    coupon_id: str = Field(alias="couponId")
    coupon_code: str = Field(alias="couponCode")
    is_existing_user: bool = Field(default=False, alias="isExistingUser")
    phase: RegistrationPhase
    message: str
