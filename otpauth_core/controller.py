"""
Auth Flow Controller
====================
Orchestrates OTP send, OTP verification, session issuance and logout.

The controller raises ``AuthError`` subclasses; ``otpauth_core.api`` turns
them into RPC responses.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar, Union

import structlog

from .audit import AuditEventType, AuditSink, AuditStatus
from .config import AuthConfig
from .errors import (
    AccountInactive,
    AuthError,
    ChallengeNotFound,
    DependencyTimeout,
    DependencyUnavailable,
    InvalidOtpCode,
    InvalidProfileData,
    InvalidRequest,
    NotificationFailed,
    OtpExpired,
    TooManyAttempts,
    UserAlreadyExists,
    UserNotFound,
)
from .gateways.sms import SmsGateway
from .gateways.users import UserAccount, UserRepository
from .limiter import AttemptLimiter
from .otp import (
    ChallengeState,
    OTPChallenge,
    Purpose,
    evaluate_challenge,
    generate_otp,
    matches_code,
    new_challenge,
)
from .phone import ensure_valid_phone, is_valid_email, mask_phone
from .session import SessionIssuer
from .store import ChallengeStore, InMemoryChallengeStore

logger = structlog.get_logger(__name__)

T = TypeVar("T")

PROFILE_FIELDS = frozenset({"first_name", "last_name", "email", "national_id", "language"})
LANGUAGES = ("he", "en")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class OtpDispatch:
    """Outcome of a successful send."""
    phone: str
    masked_phone: str
    expires_at: datetime


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a successful verification."""
    user: UserAccount
    token: str
    purpose: Purpose


class AuthFlowController:
    """
    Passwordless phone authentication.

    Example:
        controller = AuthFlowController(
            users=InMemoryUserRepository(),
            sms=ConsoleSmsGateway(),
            audit=AuditLogger("dashboard-auth"),
            config=AuthConfig.from_env(),
        )

        dispatch = await controller.send_otp("050-123-4567", "register")
        result = await controller.verify_otp("050-123-4567", code, "register")
    """

    def __init__(
        self,
        users: UserRepository,
        sms: SmsGateway,
        audit: AuditSink,
        challenges: Optional[ChallengeStore] = None,
        sessions: Optional[SessionIssuer] = None,
        config: Optional[AuthConfig] = None,
        clock: Callable[[], datetime] = _utcnow,
        code_generator: Callable[[int], str] = generate_otp,
    ):
        self.config = config or AuthConfig()
        self.users = users
        self.sms = sms
        self.audit = audit
        self.challenges = challenges or InMemoryChallengeStore()
        self.sessions = sessions or SessionIssuer(
            secret=self.config.session_secret,
            ttl_seconds=self.config.session_ttl_seconds,
            clock=clock,
        )
        self.limiter = AttemptLimiter(
            max_attempts=self.config.max_attempts,
            block_duration_seconds=self.config.block_duration_seconds,
        )
        self._clock = clock
        self._generate_code = code_generator

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def send_otp(self, phone: str, purpose: Union[Purpose, str]) -> OtpDispatch:
        """
        Issue a new OTP challenge and deliver the code by SMS.

        A pending challenge for the same phone is replaced. The challenge is
        stored before delivery, so it survives a gateway failure.

        Raises:
            InvalidPhoneFormat, UserNotFound, AccountInactive,
            UserAlreadyExists, TooManyAttempts, NotificationFailed,
            DependencyTimeout, DependencyUnavailable
        """
        purpose = self._parse_purpose(purpose)
        normalized = ensure_valid_phone(phone, self.config.phone_country_code)
        masked = mask_phone(normalized)
        log = logger.bind(phone=masked, purpose=purpose.value)

        user = await self._find_user(normalized)
        self._check_send_preconditions(user, purpose)

        now = self._clock()
        code = self._generate_code(self.config.otp_length)

        try:
            async with self.challenges.lock(normalized):
                current = await self.challenges.get(normalized)
                verdict = self.limiter.check(current, now)
                if verdict.blocked:
                    blocked = TooManyAttempts(verdict.remaining_seconds)
                else:
                    blocked = None
                    challenge = new_challenge(
                        normalized, code, purpose, now, self.config.otp_ttl_seconds
                    )
                    await self.challenges.put(challenge)
        except AuthError:
            raise
        except Exception as e:
            raise self._dependency_failure("challenge store", e) from e

        if blocked is not None:
            log.warning("otp_send_blocked", remaining_seconds=blocked.remaining_seconds)
            self._record(
                AuditEventType.OTP_BLOCKED,
                AuditStatus.ERROR,
                phone=normalized,
                action="otp_send",
                remaining_seconds=blocked.remaining_seconds,
            )
            raise blocked

        await self._dispatch(normalized, code, purpose)

        log.info("otp_sent", expires_at=challenge.expires_at.isoformat())
        self._record(
            AuditEventType.OTP_SENT,
            AuditStatus.SUCCESS,
            phone=normalized,
            purpose=purpose.value,
        )
        return OtpDispatch(phone=normalized, masked_phone=masked, expires_at=challenge.expires_at)

    async def verify_otp(
        self,
        phone: str,
        code: str,
        purpose: Union[Purpose, str],
        profile: Optional[Dict[str, Any]] = None,
    ) -> AuthResult:
        """
        Verify a code, update the account and issue a session.

        Only a mismatch against a live, unblocked, unexpired challenge uses
        up an attempt. A matched code is given back if the account update or
        session issuance fails on a collaborator error.

        Args:
            phone: Raw phone number
            code: Code entered by the user
            purpose: "login" or "register"
            profile: Optional registration details (first_name, last_name,
                email, national_id, language)

        Raises:
            InvalidPhoneFormat, InvalidOtpCode, ChallengeNotFound, OtpExpired,
            TooManyAttempts, UserNotFound, AccountInactive, UserAlreadyExists,
            InvalidProfileData, DependencyTimeout, DependencyUnavailable
        """
        purpose = self._parse_purpose(purpose)
        normalized = ensure_valid_phone(phone, self.config.phone_country_code)
        code = (code or "").strip()
        if not (code.isascii() and code.isdigit() and len(code) == self.config.otp_length):
            raise InvalidOtpCode(f"OTP code must be {self.config.otp_length} digits")
        profile_changes = self._profile_changes(profile) if purpose is Purpose.REGISTER else {}

        now = self._clock()
        failure: Optional[AuthError] = None

        try:
            async with self.challenges.lock(normalized):
                challenge = await self.challenges.get(normalized)
                failure = self._precheck(challenge, purpose, now)
                if failure is None:
                    if matches_code(challenge, code):
                        await self.challenges.delete(normalized)
                    else:
                        updated, verdict = self.limiter.check_and_record_failure(challenge, now)
                        await self.challenges.put(updated)
                        if verdict.blocked:
                            failure = TooManyAttempts(verdict.remaining_seconds)
                        else:
                            failure = InvalidOtpCode(
                                f"Invalid OTP code. {verdict.attempts_remaining} attempts remaining"
                            )
        except AuthError:
            raise
        except Exception as e:
            raise self._dependency_failure("challenge store", e) from e

        if failure is not None:
            self._record_verify_failure(normalized, purpose, failure)
            raise failure

        try:
            user = await self._complete(normalized, purpose, profile_changes, now)
        except (DependencyTimeout, DependencyUnavailable):
            await self._restore_challenge(challenge)
            raise
        except AuthError as e:
            self._record_verify_failure(normalized, purpose, e)
            raise

        try:
            token = await self.sessions.issue(user.id, user.role)
        except Exception as e:
            failure = self._dependency_failure("session store", e)
            await self._restore_challenge(challenge)
            raise failure from e

        logger.info(
            "otp_verified", phone=mask_phone(normalized), purpose=purpose.value, user_id=user.id
        )
        self._record(
            AuditEventType.OTP_VERIFIED,
            AuditStatus.SUCCESS,
            phone=normalized,
            purpose=purpose.value,
            user_id=user.id,
        )
        return AuthResult(user=user, token=token, purpose=purpose)

    async def logout(self, token: Optional[str]) -> None:
        """Revoke the session behind a token. Always succeeds."""
        user_id = None
        try:
            session = await self.sessions.resolve(token)
            if session is not None:
                user_id = session.user_id
            await self.sessions.revoke(token)
        except Exception as e:
            logger.exception("logout_revoke_failed", error=str(e))
            self._record(
                AuditEventType.DEPENDENCY_FAILURE,
                AuditStatus.ERROR,
                dependency="session store",
                action="logout",
            )
            return

        self._record(AuditEventType.LOGOUT, AuditStatus.SUCCESS, user_id=user_id)

    async def current(self, token: Optional[str]) -> Optional[UserAccount]:
        """Return the account of the session behind a token, or None."""
        session = await self._resolve_session(token)
        if session is None:
            return None
        return await self._call(
            "user repository",
            self.users.get(session.user_id),
            self.config.user_repository_timeout_seconds,
        )

    async def refresh_session(self, token: Optional[str]) -> Optional[UserAccount]:
        """
        Re-validate a session against the user repository.

        Sessions of deleted or deactivated accounts are revoked.
        """
        session = await self._resolve_session(token)
        if session is None:
            return None

        user = await self._call(
            "user repository",
            self.users.get(session.user_id),
            self.config.user_repository_timeout_seconds,
        )
        if user is not None and user.is_active:
            return user

        try:
            await self.sessions.revoke(token)
        except Exception as e:
            raise self._dependency_failure("session store", e) from e

        logger.info("session_revoked_inactive_user", user_id=session.user_id)
        self._record(
            AuditEventType.SESSION_REVOKED,
            AuditStatus.SUCCESS,
            user_id=session.user_id,
            reason="user_missing" if user is None else "account_inactive",
        )
        return None

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_purpose(purpose: Union[Purpose, str]) -> Purpose:
        try:
            return Purpose(purpose)
        except ValueError:
            raise InvalidRequest() from None

    @staticmethod
    def _check_send_preconditions(user: Optional[UserAccount], purpose: Purpose) -> None:
        if purpose is Purpose.LOGIN:
            if user is None:
                raise UserNotFound()
            if not user.is_active:
                raise AccountInactive()
        elif user is not None and not user.is_placeholder:
            raise UserAlreadyExists()

    def _precheck(
        self,
        challenge: Optional[OTPChallenge],
        purpose: Purpose,
        now: datetime,
    ) -> Optional[AuthError]:
        """Return the error that stops verification before any code comparison."""
        state = evaluate_challenge(challenge, now)

        if state is ChallengeState.ABSENT:
            return ChallengeNotFound()
        if state is ChallengeState.BLOCKED:
            return TooManyAttempts(self.limiter.check(challenge, now).remaining_seconds)
        if challenge.purpose is not purpose:
            return ChallengeNotFound()
        if state is ChallengeState.EXPIRED:
            return OtpExpired()
        return None

    @staticmethod
    def _profile_changes(profile: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        changes = {k: v for k, v in (profile or {}).items() if v is not None}

        unknown = set(changes) - PROFILE_FIELDS
        if unknown:
            raise InvalidProfileData(f"Unknown registration fields: {', '.join(sorted(unknown))}")
        if "email" in changes and not is_valid_email(changes["email"]):
            raise InvalidProfileData("Invalid email format")
        if "language" in changes and changes["language"] not in LANGUAGES:
            raise InvalidProfileData('Language must be either "he" or "en"')
        return changes

    async def _complete(
        self,
        phone: str,
        purpose: Purpose,
        profile_changes: Dict[str, Any],
        now: datetime,
    ) -> UserAccount:
        """Apply the account side of a successful verification."""
        timeout = self.config.user_repository_timeout_seconds
        user = await self._find_user(phone)

        if purpose is Purpose.LOGIN:
            if user is None:
                raise UserNotFound()
            if not user.is_active:
                raise AccountInactive()
            return await self._call(
                "user repository",
                self.users.update(user.id, {"is_phone_verified": True, "last_login": now}),
                timeout,
            )

        if user is not None and not user.is_placeholder:
            raise UserAlreadyExists()

        changes = {
            **profile_changes,
            "is_active": True,
            "is_phone_verified": True,
            "last_login": now,
        }
        if user is not None:
            registered = await self._call(
                "user repository", self.users.update(user.id, changes), timeout
            )
        else:
            registered = await self._call(
                "user repository", self.users.create(phone, **changes), timeout
            )

        self._record(
            AuditEventType.USER_REGISTERED,
            AuditStatus.SUCCESS,
            phone=phone,
            user_id=registered.id,
        )
        return registered

    async def _dispatch(self, phone: str, code: str, purpose: Purpose) -> None:
        message = f"Your {self.config.app_name} verification code is: {code}"
        try:
            result = await self._call(
                "SMS gateway", self.sms.send(phone, message), self.config.sms_timeout_seconds
            )
        except DependencyTimeout:
            self._record(
                AuditEventType.OTP_SEND_FAILED,
                AuditStatus.ERROR,
                phone=phone,
                purpose=purpose.value,
                reason="timeout",
            )
            raise
        except DependencyUnavailable as e:
            self._record(
                AuditEventType.OTP_SEND_FAILED,
                AuditStatus.ERROR,
                phone=phone,
                purpose=purpose.value,
                reason="gateway_error",
            )
            raise NotificationFailed() from e

        if not result.success:
            logger.error(
                "otp_delivery_failed",
                phone=mask_phone(phone),
                provider=self.sms.name,
                error_code=result.error_code,
                error=result.error_message,
            )
            self._record(
                AuditEventType.OTP_SEND_FAILED,
                AuditStatus.ERROR,
                phone=phone,
                purpose=purpose.value,
                reason="provider_rejected",
                error_code=result.error_code,
            )
            raise NotificationFailed()

    async def _find_user(self, phone: str) -> Optional[UserAccount]:
        return await self._call(
            "user repository",
            self.users.find_by_phone(phone),
            self.config.user_repository_timeout_seconds,
        )

    async def _resolve_session(self, token: Optional[str]):
        if not token:
            return None
        try:
            return await self.sessions.resolve(token)
        except Exception as e:
            raise self._dependency_failure("session store", e) from e

    async def _restore_challenge(self, challenge: OTPChallenge) -> None:
        """
        Put back a consumed challenge after the account or session step failed.

        A challenge issued in the meantime is left in place.
        """
        try:
            async with self.challenges.lock(challenge.phone):
                if await self.challenges.get(challenge.phone) is None:
                    await self.challenges.put(challenge)
        except Exception as e:
            logger.exception(
                "otp_challenge_restore_failed", phone=mask_phone(challenge.phone), error=str(e)
            )
            return

        logger.info("otp_challenge_restored", phone=mask_phone(challenge.phone))

    # ------------------------------------------------------------------
    # Collaborator plumbing
    # ------------------------------------------------------------------

    async def _call(self, dependency: str, awaitable: Awaitable[T], timeout: float) -> T:
        """
        Await a collaborator call under a timeout.

        Raises:
            DependencyTimeout: The call did not finish in time
            DependencyUnavailable: The call raised anything else
        """
        try:
            return await asyncio.wait_for(awaitable, timeout)
        except asyncio.TimeoutError:
            logger.error("dependency_timeout", dependency=dependency, timeout=timeout)
            self._record(
                AuditEventType.DEPENDENCY_FAILURE,
                AuditStatus.ERROR,
                dependency=dependency,
                reason="timeout",
            )
            raise DependencyTimeout(dependency, timeout)
        except AuthError:
            raise
        except Exception as e:
            raise self._dependency_failure(dependency, e) from e

    def _dependency_failure(self, dependency: str, exc: Exception) -> DependencyUnavailable:
        logger.error(
            "dependency_failure",
            dependency=dependency,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        self._record(
            AuditEventType.DEPENDENCY_FAILURE,
            AuditStatus.ERROR,
            dependency=dependency,
            error_type=type(exc).__name__,
        )
        return DependencyUnavailable(dependency, str(exc))

    def _record_verify_failure(self, phone: str, purpose: Purpose, error: AuthError) -> None:
        if isinstance(error, TooManyAttempts):
            logger.warning(
                "otp_verify_blocked", phone=mask_phone(phone), remaining_seconds=error.remaining_seconds
            )
            self._record(
                AuditEventType.OTP_BLOCKED,
                AuditStatus.ERROR,
                phone=phone,
                action="otp_verify",
                remaining_seconds=error.remaining_seconds,
            )
            return

        logger.info("otp_verify_failed", phone=mask_phone(phone), reason=error.code)
        self._record(
            AuditEventType.OTP_VERIFY_FAILED,
            AuditStatus.ERROR,
            phone=phone,
            purpose=purpose.value,
            reason=error.code.lower(),
        )

    def _record(self, event_type: AuditEventType, status: AuditStatus, **metadata: Any) -> None:
        """Record an audit event; sink failures are logged, never raised."""
        try:
            self.audit.record(event_type, status, metadata)
        except Exception:
            logger.exception("audit_record_failed", event_type=event_type.value)
