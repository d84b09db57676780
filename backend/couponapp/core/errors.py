"""Error taxonomy shared by services and mapped to HTTP responses in main.py."""
from typing import Optional


class CouponAppError(Exception):
    status_code = 500
    outcome = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CouponAppError):
    """Missing or malformed input. Never retried."""

    status_code = 400
    outcome = "invalid_request"


class AuthError(CouponAppError):
    status_code = 401
    outcome = "unauthenticated"


class ForbiddenError(CouponAppError):
    status_code = 403
    outcome = "forbidden"


class NotFoundError(CouponAppError):
    status_code = 404
    outcome = "not_found"


class ConflictError(CouponAppError):
    status_code = 409
    outcome = "conflict"


class DependencyError(CouponAppError):
    """Store unreachable or an external service failed."""

    status_code = 500
    outcome = "dependency_error"


class SmsDispatchError(DependencyError):
    outcome = "sms_dispatch_failed"

    def __init__(self, message: str, provider_code: Optional[int] = None):
        super().__init__(message)
        self.provider_code = provider_code
