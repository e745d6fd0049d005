"""
Tests for the RPC-style auth API.
"""

import pytest

from otpauth_core.api import AuthAPI, SessionContext
from otpauth_core.controller import AuthFlowController

PHONE = "+972501234567"
CODE = "483920"


@pytest.fixture
def api(users, sms, audit, challenges, sessions, config, clock):
    controller = AuthFlowController(
        users=users,
        sms=sms,
        audit=audit,
        challenges=challenges,
        sessions=sessions,
        config=config,
        clock=clock,
        code_generator=lambda length: CODE,
    )
    return AuthAPI(controller)


class TestAuthAPI:

    @pytest.mark.asyncio
    async def test_send_otp_response(self, api):
        response = await api.send_otp("0501234567", "register")
        payload = response.model_dump(by_alias=True, mode="json")

        assert payload["success"] is True
        assert payload["message"] == "OTP sent to +97250123****"
        assert payload["expiresAt"].startswith("2026-01-01T12:05:00")
        assert CODE not in str(payload)

    @pytest.mark.asyncio
    async def test_send_otp_error_message(self, api, users):
        await users.create(PHONE)

        response = await api.send_otp(PHONE, "register")

        assert response.success is False
        assert response.message == "User already exists. Use login instead."

    @pytest.mark.asyncio
    async def test_send_otp_invalid_purpose(self, api):
        response = await api.send_otp(PHONE, "admin")

        assert response.success is False
        assert response.message == "Invalid request type"

    @pytest.mark.asyncio
    async def test_register_flow(self, api):
        context = SessionContext()
        await api.send_otp(PHONE, "register")

        response = await api.verify_otp(
            context, PHONE, CODE, "register", first_name="Dana", last_name="Levi", email="dana@example.com"
        )
        payload = response.model_dump(by_alias=True)

        assert payload["success"] is True
        assert payload["message"] == "Registration completed successfully"
        assert payload["user"]["fullName"] == "Dana Levi"
        assert payload["user"]["isPhoneVerified"] is True
        assert "code" not in payload["user"]
        assert context.token is not None

        current = await api.current(context)
        assert current.user.id == payload["user"]["id"]

    @pytest.mark.asyncio
    async def test_login_message(self, api, users):
        await users.create(PHONE, first_name="Dana")
        context = SessionContext()

        await api.send_otp(PHONE, "login")
        response = await api.verify_otp(context, PHONE, CODE, "login")

        assert response.message == "Login successful"
        assert response.user.first_name == "Dana"

    @pytest.mark.asyncio
    async def test_failed_verify_leaves_context(self, api):
        context = SessionContext()
        await api.send_otp(PHONE, "register")

        response = await api.verify_otp(context, PHONE, "000000", "register")

        assert response.success is False
        assert response.message == "Invalid OTP code. 2 attempts remaining"
        assert response.user is None
        assert context.token is None

    @pytest.mark.asyncio
    async def test_logout_is_idempotent(self, api):
        context = SessionContext()
        await api.send_otp(PHONE, "register")
        await api.verify_otp(context, PHONE, CODE, "register")

        first = await api.logout(context)
        second = await api.logout(context)

        assert first.success and second.success
        assert first.message == "Logout successful"
        assert context.token is None
        assert (await api.current(context)).user is None

    @pytest.mark.asyncio
    async def test_refresh_session_clears_revoked_token(self, api, users):
        context = SessionContext()
        await api.send_otp(PHONE, "register")
        response = await api.verify_otp(context, PHONE, CODE, "register")

        assert (await api.refresh_session(context)).user.id == response.user.id

        await users.update(response.user.id, {"is_active": False})

        assert (await api.refresh_session(context)).user is None
        assert context.token is None
