"""
Phone Utilities
===============
Normalization and numbering-plan validation for Israeli phone numbers.
"""

import re

from .errors import InvalidPhoneFormat

DEFAULT_COUNTRY_CODE = "972"

# Landline area codes 2,3,4,8,9; mobile prefixes 50-56,58,59; 77 VoIP.
# Subscriber segment is always 7 digits.
ISRAELI_PHONE_PATTERN = re.compile(r"^\+972([23489]|5[012345689]|77)[0-9]{7}$")

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_phone(phone: str, country_code: str = DEFAULT_COUNTRY_CODE) -> str:
    """
    Normalize a raw phone number to international form.

    A leading trunk ``0`` is replaced by the country code; numbers without
    the country code get it prefixed. Normalizing twice is a no-op.

    Args:
        phone: Raw phone number, national or international
        country_code: Country code without +

    Returns:
        Canonical phone number, e.g. ``+972501234567``
    """
    digits = re.sub(r"\D", "", phone or "")

    if digits.startswith("0"):
        digits = country_code + digits[1:]
    elif not digits.startswith(country_code):
        digits = country_code + digits

    return f"+{digits}"


def validate_phone(phone: str) -> bool:
    """Check a normalized phone number against the numbering plan."""
    return bool(ISRAELI_PHONE_PATTERN.match(phone))


def ensure_valid_phone(phone: str, country_code: str = DEFAULT_COUNTRY_CODE) -> str:
    """
    Normalize then validate a phone number.

    Raises:
        InvalidPhoneFormat: If the input is empty or fails validation
    """
    if not phone or not phone.strip():
        raise InvalidPhoneFormat("Phone number is required")

    normalized = normalize_phone(phone, country_code)
    if not validate_phone(normalized):
        raise InvalidPhoneFormat()
    return normalized


def mask_phone(phone: str) -> str:
    """Mask a phone number, hiding the last 4 digits."""
    if len(phone) <= 4:
        return phone
    return phone[:-4] + "****"


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email or ""))
