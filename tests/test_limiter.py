"""
Tests for the attempt limiter.
"""

from datetime import datetime, timedelta, timezone

import pytest

from otpauth_core.limiter import AttemptLimiter
from otpauth_core.otp import Purpose, new_challenge

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def challenge():
    return new_challenge("+972501234567", "483920", Purpose.LOGIN, NOW, ttl_seconds=300)


class TestAttemptLimiter:

    def test_failures_below_budget(self, challenge):
        """Each failure should add exactly one attempt."""
        limiter = AttemptLimiter(max_attempts=3, block_duration_seconds=900)

        updated, verdict = limiter.check_and_record_failure(challenge, NOW)

        assert updated.attempts == 1
        assert verdict.blocked is False
        assert verdict.attempts_remaining == 2
        assert updated.code_hash == challenge.code_hash

    def test_block_on_last_failure(self, challenge):
        """Reaching the budget should block and clear the code."""
        limiter = AttemptLimiter(max_attempts=3, block_duration_seconds=900)

        for _ in range(3):
            challenge, verdict = limiter.check_and_record_failure(challenge, NOW)

        assert verdict.blocked is True
        assert verdict.remaining_seconds == 900
        assert challenge.attempts == 3
        assert challenge.blocked_until == NOW + timedelta(seconds=900)
        assert challenge.code_hash is None
        assert challenge.expires_at is None

    def test_check_reports_remaining_cooldown(self, challenge):
        limiter = AttemptLimiter(max_attempts=1, block_duration_seconds=900)
        blocked, _ = limiter.check_and_record_failure(challenge, NOW)

        verdict = limiter.check(blocked, NOW + timedelta(seconds=100.5))

        assert verdict.blocked is True
        assert verdict.remaining_seconds == 800

    def test_check_after_cooldown(self, challenge):
        limiter = AttemptLimiter(max_attempts=1, block_duration_seconds=900)
        blocked, _ = limiter.check_and_record_failure(challenge, NOW)

        assert limiter.check(blocked, NOW + timedelta(seconds=900)).blocked is False

    def test_check_without_challenge(self):
        limiter = AttemptLimiter()

        verdict = limiter.check(None, NOW)

        assert verdict.blocked is False
        assert verdict.attempts == 0

    def test_rejects_invalid_budget(self):
        with pytest.raises(ValueError):
            AttemptLimiter(max_attempts=0)
