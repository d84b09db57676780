import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from couponapp.core.config import settings
from couponapp.core.deps import get_db
from couponapp.core.errors import AuthError
from couponapp.schemas.registration import CheckOtpResponse, CheckOtpSubmit, SendOtpResponse, SendOtpSubmit
from couponapp.services import ledger
from couponapp.services.phone import normalize_us_phone
from couponapp.services.registration_flow import RegistrationEvent, RegistrationPhase, advance
from couponapp.services.sms import SmsDispatcher, get_sms_dispatcher
from couponapp.services.verification import VerificationOutcome, check_code, request_code

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/send-otp", response_model=SendOtpResponse)
def send_otp(
    body: SendOtpSubmit,
    db: Session = Depends(get_db),
    dispatcher: SmsDispatcher = Depends(get_sms_dispatcher),
):
    """
    Public: step 1 of registration. Normalizes the phone, stores a 6-digit code
    (valid OTP_EXPIRE_MINUTES) and texts it. A new request replaces any earlier code.
    """
    phone_key = normalize_us_phone(body.phone)
    logger.info("send-otp request: phone=%s", phone_key)

    otp = request_code(db, phone_key, dispatcher)
    phase = advance(RegistrationPhase.REGISTERING, RegistrationEvent.CODE_SENT)
    if otp.revealed_code:
        return SendOtpResponse(
            phone=phone_key,
            phase=phase,
            message="SMS could not be sent (test mode). Enter the code shown below.",
            otp_code=otp.revealed_code,
        )
    return SendOtpResponse(
        phone=phone_key,
        phase=phase,
        message=f"Verification code sent to {phone_key}.",
    )


@router.post("/check-otp", response_model=CheckOtpResponse)
def check_otp(body: CheckOtpSubmit, db: Session = Depends(get_db)):
    """
    Public: step 2. Checks the code and, on success, returns the phone's coupon,
    issuing it first if this is the first registration for that phone.
    """
    phone_key = normalize_us_phone(body.phone)

    outcome = check_code(db, phone_key, body.code)
    if outcome is VerificationOutcome.EXPIRED:
        raise AuthError("Code expired. Please request a new one.")
    if outcome is VerificationOutcome.INVALID:
        raise AuthError("Invalid verification code or no pending verification.")

    result = ledger.issue(db, phone_key, body.name, body.address)
    coupon = result.coupon
    if result.existing:
        phase = advance(RegistrationPhase.AWAITING_CODE, RegistrationEvent.EXISTING_COUPON_RETURNED)
        message = f"Access verified. Coupon available for {coupon.holder_name}."
    else:
        phase = advance(RegistrationPhase.AWAITING_CODE, RegistrationEvent.COUPON_ISSUED)
        message = "Verification complete. Registration finished!"

    return CheckOtpResponse(
        coupon_id=coupon.coupon_id,
        coupon_code=coupon.fixed_code or settings.FIXED_COUPON_CODE,
        is_existing_user=result.existing,
        phase=phase,
        message=message,
    )
