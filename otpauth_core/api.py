"""
Auth API
========
Transport-agnostic RPC surface over the auth flow.

Each call returns a response model; domain errors become
``success=False`` with the error message. The caller's session token
travels in a ``SessionContext`` that the HTTP layer maps to its cookie
or bearer header.

Usage:
    api = AuthAPI(controller)
    context = SessionContext()

    await api.send_otp("0501234567", "login")
    response = await api.verify_otp(context, "0501234567", "483920", "login")
    response.model_dump(by_alias=True)
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

import structlog
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .controller import AuthFlowController
from .errors import AuthError
from .gateways.users import UserAccount
from .otp import Purpose

logger = structlog.get_logger(__name__)


class ApiModel(BaseModel):
    """Base for response models; serializes with camelCase aliases."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserProjection(ApiModel):
    """Account fields safe to return to callers."""
    id: str
    first_name: str
    last_name: str
    full_name: str
    phone: str
    email: str
    role: str
    is_phone_verified: bool
    is_email_verified: bool

    @classmethod
    def from_account(cls, user: UserAccount) -> "UserProjection":
        return cls(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            full_name=user.full_name,
            phone=user.phone,
            email=user.email,
            role=user.role,
            is_phone_verified=user.is_phone_verified,
            is_email_verified=user.is_email_verified,
        )


class SendOtpResponse(ApiModel):
    success: bool
    message: str
    expires_at: Optional[datetime] = None


class VerifyOtpResponse(ApiModel):
    success: bool
    message: str
    user: Optional[UserProjection] = None


class LogoutResponse(ApiModel):
    success: bool
    message: str


class CurrentUserResponse(ApiModel):
    user: Optional[UserProjection] = None


@dataclass
class SessionContext:
    """Per-client holder of the session token (cookie or bearer value)."""
    token: Optional[str] = None


SUCCESS_MESSAGES = {
    Purpose.LOGIN: "Login successful",
    Purpose.REGISTER: "Registration completed successfully",
}


class AuthAPI:
    """RPC-style operations: sendOtp, verifyOtp, logout, current."""

    def __init__(self, controller: AuthFlowController):
        self.controller = controller

    async def send_otp(self, phone: str, purpose: str) -> SendOtpResponse:
        try:
            dispatch = await self.controller.send_otp(phone, purpose)
        except AuthError as e:
            return SendOtpResponse(success=False, message=e.message)

        return SendOtpResponse(
            success=True,
            message=f"OTP sent to {dispatch.masked_phone}",
            expires_at=dispatch.expires_at,
        )

    async def verify_otp(
        self,
        context: SessionContext,
        phone: str,
        code: str,
        purpose: str,
        **profile: Any,
    ) -> VerifyOtpResponse:
        """
        Verify a code and start a session.

        Extra keyword arguments are registration details passed through to
        the account (first_name, last_name, email, national_id, language).
        """
        try:
            result = await self.controller.verify_otp(phone, code, purpose, profile or None)
        except AuthError as e:
            return VerifyOtpResponse(success=False, message=e.message)

        context.token = result.token
        return VerifyOtpResponse(
            success=True,
            message=SUCCESS_MESSAGES[result.purpose],
            user=UserProjection.from_account(result.user),
        )

    async def logout(self, context: SessionContext) -> LogoutResponse:
        await self.controller.logout(context.token)
        context.token = None
        return LogoutResponse(success=True, message="Logout successful")

    async def current(self, context: SessionContext) -> CurrentUserResponse:
        try:
            user = await self.controller.current(context.token)
        except AuthError as e:
            logger.warning("current_user_unavailable", error=e.code)
            user = None
        return CurrentUserResponse(user=UserProjection.from_account(user) if user else None)

    async def refresh_session(self, context: SessionContext) -> CurrentUserResponse:
        try:
            user = await self.controller.refresh_session(context.token)
        except AuthError as e:
            logger.warning("session_refresh_unavailable", error=e.code)
            return CurrentUserResponse(user=None)

        if user is None:
            context.token = None
            return CurrentUserResponse(user=None)
        return CurrentUserResponse(user=UserProjection.from_account(user))
