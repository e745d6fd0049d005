"""
OTPAuth Core Library
====================
Phone-number OTP authentication and session issuance.
"""

__version__ = "0.1.0"

# Config
from otpauth_core.config import AuthConfig, ConfigValidation, validate_config, ensure_valid_config

# Errors
from otpauth_core.errors import (
    AuthError,
    InvalidRequest,
    InvalidPhoneFormat,
    UserNotFound,
    UserAlreadyExists,
    AccountInactive,
    ChallengeNotFound,
    OtpExpired,
    InvalidOtpCode,
    InvalidProfileData,
    TooManyAttempts,
    NotificationFailed,
    DependencyTimeout,
    DependencyUnavailable,
    ConfigurationError,
)

# Phone
from otpauth_core.phone import normalize_phone, validate_phone, ensure_valid_phone, mask_phone

# OTP
from otpauth_core.otp import (
    Purpose,
    ChallengeState,
    OTPChallenge,
    generate_otp,
    evaluate_challenge,
)

# Limiter
from otpauth_core.limiter import AttemptLimiter, LimitVerdict

# Stores
from otpauth_core.store import ChallengeStore, InMemoryChallengeStore, RedisChallengeStore

# Sessions
from otpauth_core.session import (
    Session,
    SessionIssuer,
    SessionStore,
    InMemorySessionStore,
    RedisSessionStore,
)

# Audit
from otpauth_core.audit import (
    AuditEventType,
    AuditStatus,
    AuditEvent,
    AuditSink,
    AuditLogger,
    verify_chain_integrity,
)

# Collaborators
from otpauth_core.gateways import (
    UserAccount,
    UserRepository,
    InMemoryUserRepository,
    SendResult,
    SmsGateway,
    ConsoleSmsGateway,
    RetryingSmsGateway,
    TwilioSmsGateway,
)

# Flow
from otpauth_core.controller import AuthFlowController, AuthResult, OtpDispatch
from otpauth_core.api import (
    AuthAPI,
    SessionContext,
    UserProjection,
    SendOtpResponse,
    VerifyOtpResponse,
    LogoutResponse,
    CurrentUserResponse,
)

# Logging
from otpauth_core.logging_config import setup_logging

__all__ = [
    "__version__",
    # Config
    "AuthConfig",
    "ConfigValidation",
    "validate_config",
    "ensure_valid_config",
    # Errors
    "AuthError",
    "InvalidRequest",
    "InvalidPhoneFormat",
    "UserNotFound",
    "UserAlreadyExists",
    "AccountInactive",
    "ChallengeNotFound",
    "OtpExpired",
    "InvalidOtpCode",
    "InvalidProfileData",
    "TooManyAttempts",
    "NotificationFailed",
    "DependencyTimeout",
    "DependencyUnavailable",
    "ConfigurationError",
    # Phone
    "normalize_phone",
    "validate_phone",
    "ensure_valid_phone",
    "mask_phone",
    # OTP
    "Purpose",
    "ChallengeState",
    "OTPChallenge",
    "generate_otp",
    "evaluate_challenge",
    # Limiter
    "AttemptLimiter",
    "LimitVerdict",
    # Stores
    "ChallengeStore",
    "InMemoryChallengeStore",
    "RedisChallengeStore",
    # Sessions
    "Session",
    "SessionIssuer",
    "SessionStore",
    "InMemorySessionStore",
    "RedisSessionStore",
    # Audit
    "AuditEventType",
    "AuditStatus",
    "AuditEvent",
    "AuditSink",
    "AuditLogger",
    "verify_chain_integrity",
    # Collaborators
    "UserAccount",
    "UserRepository",
    "InMemoryUserRepository",
    "SendResult",
    "SmsGateway",
    "ConsoleSmsGateway",
    "RetryingSmsGateway",
    "TwilioSmsGateway",
    # Flow
    "AuthFlowController",
    "AuthResult",
    "OtpDispatch",
    "AuthAPI",
    "SessionContext",
    "UserProjection",
    "SendOtpResponse",
    "VerifyOtpResponse",
    "LogoutResponse",
    "CurrentUserResponse",
    # Logging
    "setup_logging",
]
