import asyncio
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from couponapp.core.config import settings
from couponapp.core.errors import CouponAppError
from couponapp.models import Base  # noqa: F401 - register models
from couponapp.routers import admin, auth, health, registration, staff

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Coupon Desk API",
    description="Phone-verified coupon registration and single-use redemption",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix="/health")
app.include_router(registration.router, prefix="/api")
app.include_router(auth.router, prefix="/auth")
app.include_router(staff.router, prefix="/staff")
app.include_router(admin.router, prefix="/admin")


@app.exception_handler(CouponAppError)
async def coupon_app_error_handler(request: Request, exc: CouponAppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "outcome": exc.outcome},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    fields = [".".join(str(p) for p in err.get("loc", ())[1:]) for err in exc.errors()]
    return JSONResponse(
        status_code=400,
        content={
            "detail": "Missing or invalid fields: " + ", ".join(f for f in fields if f),
            "outcome": "invalid_request",
        },
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal error while accessing the database.", "outcome": "dependency_error"},
    )


def _seed_initial_admin() -> None:
    # Create the first admin account if none exist and a password is configured
    from couponapp.core.database import SessionLocal
    from couponapp.models.access_user import AccessRole, AccessUser
    from couponapp.services.access import create_access_user

    if not settings.INITIAL_ADMIN_PASSWORD:
        return
    db = SessionLocal()
    try:
        if db.query(AccessUser).first() is None:
            create_access_user(
                db,
                settings.INITIAL_ADMIN_USERNAME,
                settings.INITIAL_ADMIN_PASSWORD,
                AccessRole.ADMIN,
            )
    finally:
        db.close()


def _purge_expired_codes() -> int:
    from couponapp.core.database import SessionLocal
    from couponapp.services.verification import purge_expired

    db = SessionLocal()
    try:
        return purge_expired(db)
    finally:
        db.close()


async def _purge_loop(interval: int) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            await run_in_threadpool(_purge_expired_codes)
        except SQLAlchemyError:
            logger.exception("Purge of expired verification codes failed")


@app.on_event("startup")
async def startup():
    await run_in_threadpool(_seed_initial_admin)
    if settings.OTP_PURGE_INTERVAL_SECONDS > 0:
        app.state.purge_task = asyncio.create_task(_purge_loop(settings.OTP_PURGE_INTERVAL_SECONDS))


@app.on_event("shutdown")
async def shutdown():
    task = getattr(app.state, "purge_task", None)
    if task is not None:
        task.cancel()
