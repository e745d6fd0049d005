"""
OTP Generation and Challenges
=============================
Secure OTP generation, hashing and the challenge state machine.
"""

from .models import Purpose, ChallengeState, OTPChallenge
from .hashing import hash_otp, verify_otp_hash, generate_salt
from .generator import generate_otp
from .lifecycle import (
    new_challenge,
    evaluate_challenge,
    block_remaining_seconds,
    matches_code,
    is_blocked,
    is_expired,
)

__all__ = [
    # Models
    "Purpose",
    "ChallengeState",
    "OTPChallenge",
    # Hashing
    "hash_otp",
    "verify_otp_hash",
    "generate_salt",
    # Generator
    "generate_otp",
    # Lifecycle
    "new_challenge",
    "evaluate_challenge",
    "block_remaining_seconds",
    "matches_code",
    "is_blocked",
    "is_expired",
]
