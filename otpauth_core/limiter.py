"""
Attempt Limiter
===============
Maximum verification attempts and cooldown lockout for OTP challenges.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Tuple

import structlog

from .otp.lifecycle import block_remaining_seconds, is_blocked
from .otp.models import OTPChallenge
from .phone import mask_phone

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LimitVerdict:
    """Attempt limit decision for one challenge."""
    blocked: bool
    attempts: int
    max_attempts: int
    remaining_seconds: Optional[int] = None  # Seconds until the block lapses

    @property
    def attempts_remaining(self) -> int:
        return max(self.max_attempts - self.attempts, 0)


class AttemptLimiter:
    """
    Enforces the failed-attempt budget of a challenge.

    The limiter is pure: it returns updated snapshots and never touches a
    store. Callers must hold the store's per-phone lock across the
    read-check-write sequence so concurrent failures are counted once each.
    """

    def __init__(self, max_attempts: int = 3, block_duration_seconds: int = 900):
        """
        Args:
            max_attempts: Failed verifications allowed before blocking
            block_duration_seconds: Cooldown once blocked
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.block_duration_seconds = block_duration_seconds

    def check(self, challenge: Optional[OTPChallenge], now: datetime) -> LimitVerdict:
        """Report whether a block is in effect before a code is compared."""
        attempts = challenge.attempts if challenge is not None else 0
        if is_blocked(challenge, now):
            return LimitVerdict(
                blocked=True,
                attempts=attempts,
                max_attempts=self.max_attempts,
                remaining_seconds=block_remaining_seconds(challenge, now),
            )
        return LimitVerdict(blocked=False, attempts=attempts, max_attempts=self.max_attempts)

    def check_and_record_failure(
        self,
        challenge: OTPChallenge,
        now: datetime,
    ) -> Tuple[OTPChallenge, LimitVerdict]:
        """
        Record one failed verification.

        Args:
            challenge: Live, unblocked challenge whose code did not match
            now: Current time

        Returns:
            Tuple of (updated challenge, verdict). When the failure exhausts
            the budget the challenge is blocked and its code and expiry are
            cleared.
        """
        attempts = challenge.attempts + 1

        if attempts < self.max_attempts:
            logger.info(
                "otp_attempt_failed",
                phone=mask_phone(challenge.phone),
                attempts=attempts,
                remaining=self.max_attempts - attempts,
            )
            return (
                challenge.evolve(attempts=attempts),
                LimitVerdict(blocked=False, attempts=attempts, max_attempts=self.max_attempts),
            )

        blocked_until = now + timedelta(seconds=self.block_duration_seconds)
        updated = challenge.evolve(
            attempts=attempts,
            blocked_until=blocked_until,
            code_hash=None,
            salt=None,
            expires_at=None,
        )

        logger.warning(
            "otp_blocked",
            phone=mask_phone(challenge.phone),
            attempts=attempts,
            blocked_for=self.block_duration_seconds,
        )

        return updated, LimitVerdict(
            blocked=True,
            attempts=attempts,
            max_attempts=self.max_attempts,
            remaining_seconds=self.block_duration_seconds,
        )
