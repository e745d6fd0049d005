"""
Authentication Errors
=====================
Domain errors raised by the OTP authentication flow.

Every error carries a user-facing message that is safe to return verbatim
to the caller. Internal faults (``DependencyUnavailable``) expose only a
generic message; the technical detail stays in the logs and audit trail.
"""

import math
from typing import Optional


# Shown to users when a collaborator fails for reasons they cannot act on
USER_FRIENDLY_MESSAGE = "Service temporarily unavailable. Please try again later."


class AuthError(Exception):
    """Base exception for all authentication flow errors."""

    code = "AUTH_ERROR"
    default_message = "Authentication failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRequest(AuthError):
    code = "INVALID_REQUEST"
    default_message = "Invalid request type"


class InvalidPhoneFormat(AuthError):
    """Raised when a phone number does not match the numbering plan."""
    code = "INVALID_PHONE_FORMAT"
    default_message = "Invalid Israeli phone number format"


class UserNotFound(AuthError):
    code = "USER_NOT_FOUND"
    default_message = "User not found"


class UserAlreadyExists(AuthError):
    code = "USER_ALREADY_EXISTS"
    default_message = "User already exists. Use login instead."


class AccountInactive(AuthError):
    code = "ACCOUNT_INACTIVE"
    default_message = "Account is inactive. Please contact support."


class ChallengeNotFound(AuthError):
    code = "CHALLENGE_NOT_FOUND"
    default_message = "No OTP request found for this phone number"


class OtpExpired(AuthError):
    code = "OTP_EXPIRED"
    default_message = "OTP code has expired. Please request a new one."


class InvalidOtpCode(AuthError):
    code = "INVALID_OTP_CODE"
    default_message = "Invalid OTP code"


class InvalidProfileData(AuthError):
    code = "INVALID_PROFILE_DATA"
    default_message = "Invalid registration details"


class TooManyAttempts(AuthError):
    """Raised while a phone is locked out after repeated failures."""

    code = "TOO_MANY_ATTEMPTS"

    def __init__(self, remaining_seconds: int):
        self.remaining_seconds = max(int(remaining_seconds), 0)
        super().__init__(
            f"Too many failed attempts. Try again in {self.remaining_minutes} minutes."
        )

    @property
    def remaining_minutes(self) -> int:
        return math.ceil(self.remaining_seconds / 60)


class NotificationFailed(AuthError):
    code = "NOTIFICATION_FAILED"
    default_message = "Failed to send OTP. Please try again."


class DependencyTimeout(AuthError):
    """Raised when a collaborator does not answer within its timeout."""

    code = "DEPENDENCY_TIMEOUT"

    def __init__(self, dependency: str, timeout: Optional[float] = None):
        self.dependency = dependency
        self.timeout = timeout
        super().__init__("The service did not respond in time. Please try again.")


class DependencyUnavailable(AuthError):
    """
    Internal fault of a collaborator (store, repository, gateway).

    The public message never includes the underlying error.
    """

    code = "SERVICE_UNAVAILABLE"

    def __init__(self, dependency: str, detail: Optional[str] = None):
        self.dependency = dependency
        self.detail = detail
        super().__init__(USER_FRIENDLY_MESSAGE)


class ConfigurationError(Exception):
    """Raised when the service configuration is invalid for production use."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("Invalid configuration: " + "; ".join(self.errors))
