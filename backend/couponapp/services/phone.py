"""Phone number normalization. Every lookup and insert keyed by phone goes through here."""
import re

from couponapp.core.errors import ValidationError

_NON_DIGITS = re.compile(r"\D")
_US_E164 = re.compile(r"^\+1\d{10}$")


def normalize_phone(raw: str) -> str:
    """
    Canonical key for a raw phone input.

    555-555-5555, (555) 555-5555 and +1 555 555 5555 all map to +15555555555.
    Numbers that are neither 10 digits nor 11 digits with a leading 1 are passed
    through as digits (with a + if the input had one).
    """
    raw = (raw or "").strip()
    digits = _NON_DIGITS.sub("", raw)
    if len(digits) == 10:
        return f"+1{digits}"
    if len(digits) == 11 and digits.startswith("1"):
        return f"+{digits}"
    if raw.startswith("+"):
        return f"+{digits}"
    return digits


def normalize_us_phone(raw: str) -> str:
    """Normalize and accept only US E.164 numbers (+1 and 10 digits)."""
    key = normalize_phone(raw)
    if not _US_E164.match(key):
        raise ValidationError("Invalid phone number format. Use a US number.")
    return key
