"""
Tests for OTP generation, hashing and the challenge lifecycle.
"""

from datetime import datetime, timedelta, timezone

import pytest

from otpauth_core.otp import ChallengeState, OTPChallenge, Purpose

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class TestGenerateOtp:
    """Tests for generate_otp."""

    def test_default_length(self):
        """Should generate a 6-digit numeric OTP."""
        from otpauth_core.otp import generate_otp

        otp = generate_otp()

        assert len(otp) == 6
        assert otp.isdigit()

    @pytest.mark.parametrize("length", [1, 4, 8, 10])
    def test_exact_length_within_range(self, length):
        """Every code should lie in [10^(n-1), 10^n - 1]."""
        from otpauth_core.otp import generate_otp

        for _ in range(200):
            otp = generate_otp(length)
            assert len(otp) == length
            assert 10 ** (length - 1) <= int(otp) <= 10 ** length - 1

    def test_rejects_zero_length(self):
        from otpauth_core.otp import generate_otp

        with pytest.raises(ValueError):
            generate_otp(0)

    def test_codes_vary(self):
        """Codes come from a random source, not a counter."""
        from otpauth_core.otp import generate_otp

        assert len({generate_otp() for _ in range(50)}) > 1


class TestHashing:

    def test_hash_and_verify_otp(self):
        """Should hash and verify OTP."""
        from otpauth_core.otp import generate_salt, hash_otp, verify_otp_hash

        salt = generate_salt()
        otp_hash = hash_otp("123456", salt)

        assert verify_otp_hash("123456", salt, otp_hash) is True
        assert verify_otp_hash("654321", salt, otp_hash) is False

    def test_salt_changes_hash(self):
        from otpauth_core.otp import hash_otp

        assert hash_otp("123456", "a") != hash_otp("123456", "b")


class TestLifecycle:
    """Tests for evaluate_challenge and friends."""

    def _pending(self, code="483920"):
        from otpauth_core.otp import new_challenge
        return new_challenge("+972501234567", code, Purpose.REGISTER, NOW, ttl_seconds=300)

    def test_absent(self):
        from otpauth_core.otp import evaluate_challenge

        assert evaluate_challenge(None, NOW) is ChallengeState.ABSENT

    def test_new_challenge_is_pending(self):
        from otpauth_core.otp import evaluate_challenge

        challenge = self._pending()

        assert challenge.attempts == 0
        assert challenge.expires_at == NOW + timedelta(seconds=300)
        assert evaluate_challenge(challenge, NOW) is ChallengeState.PENDING

    def test_code_not_stored_in_plain_text(self):
        challenge = self._pending("483920")

        assert "483920" not in str(challenge.to_dict())

    def test_pending_until_expiry_inclusive(self):
        from otpauth_core.otp import evaluate_challenge

        challenge = self._pending()

        assert evaluate_challenge(challenge, challenge.expires_at) is ChallengeState.PENDING
        assert (
            evaluate_challenge(challenge, challenge.expires_at + timedelta(seconds=1))
            is ChallengeState.EXPIRED
        )

    def test_blocked_wins_over_expiry(self):
        from otpauth_core.otp import block_remaining_seconds, evaluate_challenge

        challenge = self._pending().evolve(
            attempts=3,
            blocked_until=NOW + timedelta(minutes=15),
            code_hash=None,
            salt=None,
            expires_at=None,
        )

        assert evaluate_challenge(challenge, NOW) is ChallengeState.BLOCKED
        assert block_remaining_seconds(challenge, NOW) == 900

    def test_lapsed_block_is_absent(self):
        from otpauth_core.otp import evaluate_challenge

        challenge = self._pending().evolve(blocked_until=NOW + timedelta(minutes=15))

        assert evaluate_challenge(challenge, NOW + timedelta(minutes=15)) is ChallengeState.ABSENT

    def test_matches_code(self):
        from otpauth_core.otp import matches_code

        challenge = self._pending("483920")

        assert matches_code(challenge, "483920") is True
        assert matches_code(challenge, "000000") is False
        assert matches_code(challenge.evolve(code_hash=None, salt=None), "483920") is False

    def test_dict_round_trip(self):
        challenge = self._pending().evolve(attempts=2)

        restored = OTPChallenge.from_dict(challenge.to_dict())

        assert restored == challenge
