from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from couponapp.core.auth import get_current_staff
from couponapp.core.deps import get_db
from couponapp.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from couponapp.schemas.access import ValidateResponse, ValidateSubmit
from couponapp.services.access import Principal
from couponapp.services.redemption import RedemptionOutcome, redeem

router = APIRouter()


@router.post("/validate", response_model=ValidateResponse)
def validate_coupon(
    body: ValidateSubmit,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_staff),
):
    """Scanner: redeem a coupon by its id. A coupon can be redeemed once."""
    if not body.coupon_id:
        raise ValidationError("Coupon id is required.")

    result = redeem(db, body.coupon_id, principal)
    if result.outcome is RedemptionOutcome.FORBIDDEN:
        raise ForbiddenError("Access denied. Requires STAFF or ADMIN.")
    if result.outcome is RedemptionOutcome.NOT_FOUND:
        raise NotFoundError("Invalid QR code. Coupon not found.")
    if result.outcome is RedemptionOutcome.ALREADY_USED:
        raise ConflictError(f"Coupon already used by {result.holder_name}. Validation denied.")
    if result.outcome is RedemptionOutcome.EXPIRED:
        raise ConflictError("Coupon expired. Validation denied.")

    return ValidateResponse(
        holder_name=result.holder_name,
        message=f"Coupon valid. Use recorded for {result.holder_name}.",
    )
