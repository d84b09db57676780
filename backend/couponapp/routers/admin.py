from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from couponapp.core.auth import get_current_admin
from couponapp.core.deps import get_db
from couponapp.models.access_user import AccessUser
from couponapp.schemas.access import AccessUserCreate, AccessUserResponse, CouponResponse
from couponapp.services import ledger
from couponapp.services.access import Principal, create_access_user
from couponapp.services.export import coupons_to_csv

router = APIRouter()


@router.get("/leads", response_model=list[CouponResponse])
def list_leads(
    db: Session = Depends(get_db),
    admin: Principal = Depends(get_current_admin),
):
    """All registrations with their coupon status."""
    return ledger.list_all(db)


@router.get("/leads.csv")
def export_leads(
    db: Session = Depends(get_db),
    admin: Principal = Depends(get_current_admin),
):
    """Registrations as semicolon-delimited CSV."""
    content = coupons_to_csv(ledger.list_all(db))
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="leads.csv"'},
    )


@router.post("/users", response_model=AccessUserResponse)
def create_user(
    body: AccessUserCreate,
    db: Session = Depends(get_db),
    admin: Principal = Depends(get_current_admin),
):
    """Create a staff or admin account."""
    return create_access_user(db, body.username, body.password, body.role)


@router.get("/users", response_model=list[AccessUserResponse])
def list_users(
    db: Session = Depends(get_db),
    admin: Principal = Depends(get_current_admin),
):
    """List staff and admin accounts."""
    return db.query(AccessUser).order_by(AccessUser.username).all()
