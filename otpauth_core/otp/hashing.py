"""
OTP Hashing Utilities
=====================
Salted hashing and constant-time verification of OTP codes.
"""

import hashlib
import hmac
import secrets


def hash_otp(otp: str, salt: str) -> str:
    """
    Hash an OTP with salt using SHA-256.

    Args:
        otp: Plain OTP
        salt: Random salt

    Returns:
        Hex digest
    """
    return hashlib.sha256(f"{salt}:{otp}".encode()).hexdigest()


def verify_otp_hash(otp: str, salt: str, stored_hash: str) -> bool:
    """
    Verify an OTP against its hash.

    Uses constant-time comparison to prevent timing attacks.
    """
    computed_hash = hash_otp(otp, salt)
    return hmac.compare_digest(computed_hash, stored_hash)


def generate_salt() -> str:
    """Generate a random salt for OTP hashing."""
    return secrets.token_hex(16)
