"""
Audit Event Types
=================
Audit events emitted by the authentication flow.
"""

from enum import Enum


class AuditEventType(str, Enum):
    """Authentication audit events."""
    OTP_SENT = "auth.otp_sent"
    OTP_SEND_FAILED = "auth.otp_send_failed"
    OTP_VERIFIED = "auth.otp_verified"
    OTP_VERIFY_FAILED = "auth.otp_verify_failed"
    OTP_BLOCKED = "auth.otp_blocked"
    USER_REGISTERED = "auth.user_registered"
    LOGOUT = "auth.logout"
    SESSION_REVOKED = "auth.session_revoked"
    DEPENDENCY_FAILURE = "auth.dependency_failure"


class AuditStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    PENDING = "pending"
