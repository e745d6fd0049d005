"""
Auth Configuration
==================
Configuration for the OTP authentication core, read from the environment.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

import structlog

from .errors import ConfigurationError

logger = structlog.get_logger(__name__)

PLACEHOLDER_SECRETS = (
    "change-this-in-production",
    "your-super-secret-session-key",
    "dev-secret",
)
MIN_SECRET_LENGTH = 32


def _env_int(name: str, default: int) -> int:
    return int(os.environ.get(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.environ.get(name, str(default)))


@dataclass
class AuthConfig:
    """Configuration for OTP issuance, lockout and sessions."""
    otp_length: int = 6
    otp_ttl_seconds: int = 300  # 5 minutes
    max_attempts: int = 3
    block_duration_seconds: int = 900  # 15 minutes
    session_ttl_seconds: int = 86400  # 24 hours
    session_secret: str = "dev-secret-change-this-in-production"
    sms_timeout_seconds: float = 5.0
    user_repository_timeout_seconds: float = 5.0
    sms_max_attempts: int = 3
    phone_country_code: str = "972"
    service_name: str = "otpauth"
    app_name: str = "IntAI"
    environment: str = "development"
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_phone_number: Optional[str] = None

    @classmethod
    def from_env(cls) -> "AuthConfig":
        """Build a config from environment variables, falling back to defaults."""
        defaults = cls()
        return cls(
            otp_length=_env_int("OTP_LENGTH", defaults.otp_length),
            otp_ttl_seconds=_env_int("OTP_TTL_SECONDS", defaults.otp_ttl_seconds),
            max_attempts=_env_int("OTP_MAX_ATTEMPTS", defaults.max_attempts),
            block_duration_seconds=_env_int(
                "OTP_BLOCK_DURATION_SECONDS", defaults.block_duration_seconds
            ),
            session_ttl_seconds=_env_int("SESSION_TTL_SECONDS", defaults.session_ttl_seconds),
            session_secret=os.environ.get("SESSION_SECRET", defaults.session_secret),
            sms_timeout_seconds=_env_float("SMS_TIMEOUT_SECONDS", defaults.sms_timeout_seconds),
            user_repository_timeout_seconds=_env_float(
                "USER_REPOSITORY_TIMEOUT_SECONDS", defaults.user_repository_timeout_seconds
            ),
            sms_max_attempts=_env_int("SMS_MAX_ATTEMPTS", defaults.sms_max_attempts),
            phone_country_code=os.environ.get("PHONE_COUNTRY_CODE", defaults.phone_country_code),
            service_name=os.environ.get("SERVICE_NAME", defaults.service_name),
            app_name=os.environ.get("APP_NAME", defaults.app_name),
            environment=os.environ.get("ENVIRONMENT", defaults.environment),
            twilio_account_sid=os.environ.get("TWILIO_ACCOUNT_SID"),
            twilio_auth_token=os.environ.get("TWILIO_AUTH_TOKEN"),
            twilio_phone_number=os.environ.get("TWILIO_PHONE_NUMBER"),
        )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def has_twilio(self) -> bool:
        return bool(
            self.twilio_account_sid and self.twilio_auth_token and self.twilio_phone_number
        )


@dataclass
class ConfigValidation:
    """Result of validating an AuthConfig."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


def validate_config(config: AuthConfig) -> ConfigValidation:
    """
    Check a config for values that are unsafe or inconsistent.

    Args:
        config: Configuration to check

    Returns:
        ConfigValidation with errors (must fix) and warnings
    """
    result = ConfigValidation()

    secret = config.session_secret or ""
    if len(secret) < MIN_SECRET_LENGTH:
        result.errors.append(
            f"SESSION_SECRET must be at least {MIN_SECRET_LENGTH} characters long"
        )
    if any(placeholder in secret for placeholder in PLACEHOLDER_SECRETS):
        result.errors.append("SESSION_SECRET must be changed from its default value")

    for name in (
        "otp_length",
        "otp_ttl_seconds",
        "max_attempts",
        "block_duration_seconds",
        "session_ttl_seconds",
        "sms_max_attempts",
    ):
        if getattr(config, name) <= 0:
            result.errors.append(f"{name} must be a positive number")

    for name in ("sms_timeout_seconds", "user_repository_timeout_seconds"):
        if getattr(config, name) <= 0:
            result.errors.append(f"{name} must be a positive number")

    if not config.phone_country_code.isdigit():
        result.errors.append("PHONE_COUNTRY_CODE must contain digits only")

    if config.twilio_account_sid and not config.twilio_account_sid.startswith("AC"):
        result.warnings.append("TWILIO_ACCOUNT_SID should start with AC")
    if config.twilio_phone_number and not config.twilio_phone_number.startswith("+"):
        result.warnings.append("TWILIO_PHONE_NUMBER should start with +")
    if config.twilio_account_sid and not config.has_twilio:
        result.warnings.append(
            "Incomplete Twilio configuration. ACCOUNT_SID, AUTH_TOKEN and PHONE_NUMBER are all required."
        )
    if not config.has_twilio:
        result.warnings.append("No SMS provider configured. OTP codes will only be logged.")

    return result


def ensure_valid_config(config: AuthConfig) -> ConfigValidation:
    """
    Validate a config, raising in production when errors are present.

    Outside production the problems are logged and the config is accepted.
    """
    result = validate_config(config)

    for warning in result.warnings:
        logger.warning("config_warning", warning=warning)

    if result.errors:
        if config.is_production:
            raise ConfigurationError(result.errors)
        for error in result.errors:
            logger.warning("config_error_ignored", error=error, environment=config.environment)

    return result
