from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from couponapp.core.deps import get_db
from couponapp.schemas.access import LoginSubmit, TokenResponse
from couponapp.services.access import login

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
def access_login(data: LoginSubmit, db: Session = Depends(get_db)):
    """Staff/admin login; returns a signed access token carrying the user's role."""
    result = login(db, data.username, data.password)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )
    user, token = result
    return TokenResponse(token=token, role=user.role)
