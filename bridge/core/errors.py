"""
Application errors
Each error knows its HTTP status and renders as {"success": false, "error": ...}
"""
from typing import Any, Dict, List, Optional


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, messages: Optional[List[str]] = None, **extra: Any):
        self.message = message or self.default_message
        self.messages = messages
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "error": self.message}
        if self.messages:
            body["messages"] = list(self.messages)
        body.update(self.extra)
        return body


class ValidationError(AppError):
    status_code = 400
    default_message = "Validation failed"


class DuplicateIdentity(AppError):
    status_code = 400
    default_message = "Email already registered"


class IdentityConflict(AppError):
    """
    OAuth linking collision.
    `field` tells the client which identifier is already taken:
    "email" or "provider_id".
    """
    status_code = 400
    default_message = "Account conflict"

    def __init__(self, message: Optional[str] = None, field: str = "email", **extra: Any):
        super().__init__(message, field=field, **extra)
        self.field = field


class InvalidCredential(AppError):
    status_code = 401
    default_message = "Invalid email or password"


class AccountDisabled(AppError):
    status_code = 403
    default_message = "Your account has been deactivated. Please contact support."


class InvalidCode(AppError):
    status_code = 400
    default_message = "Invalid OTP"

    def __init__(self, remaining_attempts: int, message: Optional[str] = None):
        if message is None:
            noun = "attempt" if remaining_attempts == 1 else "attempts"
            message = f"Invalid OTP. {remaining_attempts} {noun} remaining"
        super().__init__(message, remainingAttempts=remaining_attempts)
        self.remaining_attempts = remaining_attempts


class OtpExpired(AppError):
    status_code = 400
    default_message = "OTP has expired. Please request a new one."


class OtpLocked(AppError):
    status_code = 400
    default_message = "Too many failed attempts. Please request a new OTP."


class OtpNotFound(AppError):
    status_code = 400
    default_message = "No OTP found for this number. Please request a new one."


class Unauthorized(AppError):
    status_code = 401
    default_message = "Access denied. Authentication required."


class Forbidden(AppError):
    status_code = 403
    default_message = "Access denied. Admin role required."


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class TooManyRequests(AppError):
    status_code = 429
    default_message = "Too many requests, please try again later."


class ServiceUnavailable(AppError):
    status_code = 503
    default_message = "Service Unavailable - database not connected"


class InternalError(AppError):
    status_code = 500
    default_message = "Internal server error"
