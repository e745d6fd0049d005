"""
OTP Generator
=============
Stateless numeric OTP generation from the OS random source.
"""

import secrets


def generate_otp(length: int = 6) -> str:
    """
    Generate a numeric OTP of exactly ``length`` digits.

    Codes are uniform over ``[10**(length-1), 10**length - 1]``.

    Args:
        length: Number of digits

    Returns:
        OTP string

    Raises:
        ValueError: If length is less than 1
    """
    if length < 1:
        raise ValueError("OTP length must be at least 1")

    low = 10 ** (length - 1)
    high = 10 ** length - 1
    return str(low + secrets.randbelow(high - low + 1))
