"""
Challenge Lifecycle
===================
Pure functions that derive the state of an OTP challenge at a given time.

Nothing here mutates or stores a challenge; callers pass a snapshot and the
current time and act on the verdict.
"""

import math
from datetime import datetime, timedelta
from typing import Optional

from .hashing import generate_salt, hash_otp, verify_otp_hash
from .models import ChallengeState, OTPChallenge, Purpose


def new_challenge(
    phone: str,
    code: str,
    purpose: Purpose,
    now: datetime,
    ttl_seconds: int,
) -> OTPChallenge:
    """Create a fresh pending challenge holding a hash of ``code``."""
    salt = generate_salt()
    return OTPChallenge(
        phone=phone,
        purpose=purpose,
        created_at=now,
        code_hash=hash_otp(code, salt),
        salt=salt,
        expires_at=now + timedelta(seconds=ttl_seconds),
        attempts=0,
        blocked_until=None,
    )


def is_blocked(challenge: Optional[OTPChallenge], now: datetime) -> bool:
    return bool(
        challenge is not None
        and challenge.blocked_until is not None
        and now < challenge.blocked_until
    )


def is_expired(challenge: OTPChallenge, now: datetime) -> bool:
    return challenge.expires_at is None or now > challenge.expires_at


def evaluate_challenge(challenge: Optional[OTPChallenge], now: datetime) -> ChallengeState:
    """
    Classify a challenge snapshot.

    A lapsed block counts as ABSENT. A block in effect wins over expiry.
    """
    if challenge is None:
        return ChallengeState.ABSENT

    if challenge.blocked_until is not None:
        if now < challenge.blocked_until:
            return ChallengeState.BLOCKED
        return ChallengeState.ABSENT

    if challenge.code_hash is None or is_expired(challenge, now):
        return ChallengeState.EXPIRED

    return ChallengeState.PENDING


def block_remaining_seconds(challenge: Optional[OTPChallenge], now: datetime) -> int:
    """Seconds until the block lapses, rounded up; 0 when not blocked."""
    if not is_blocked(challenge, now):
        return 0
    return math.ceil((challenge.blocked_until - now).total_seconds())


def matches_code(challenge: OTPChallenge, code: str) -> bool:
    """Constant-time comparison of ``code`` against the stored hash."""
    if challenge.code_hash is None or challenge.salt is None:
        return False
    return verify_otp_hash(code, challenge.salt, challenge.code_hash)
