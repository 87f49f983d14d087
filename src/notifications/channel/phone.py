"""Phone number normalization for messaging providers.

Providers expect the country code followed by the national number, digits
only (e.g. ``923001234567``). Local formats are accepted:

    0300-1234567    → 923001234567
    3001234567      → 923001234567
    +92 300 1234567 → 923001234567
    920300-1234567  → 923001234567
"""

import re

NATIONAL_NUMBER_LENGTH = 10


def normalize_phone_number(number: str, country_code: str = "92") -> str:
    """Return ``number`` as country code + national number.

    Raises:
        ValueError: if the number cannot be normalized.
    """
    digits = re.sub(r"\D", "", number or "")
    if digits.startswith("0"):
        digits = digits[1:]

    full_length = len(country_code) + NATIONAL_NUMBER_LENGTH
    if len(digits) == NATIONAL_NUMBER_LENGTH and not digits.startswith(country_code):
        return country_code + digits
    if digits.startswith(country_code) and len(digits) == full_length:
        return digits
    if digits.startswith(country_code + "0") and len(digits) == full_length + 1:
        return country_code + digits[len(country_code) + 1 :]

    raise ValueError(f"Invalid phone number: {number!r}")
