"""Phone and email normalization and display formatting."""

from __future__ import annotations

import re

_NON_DIGIT_RE = re.compile(r"\D")


def normalize_phone(raw: str) -> str:
    """Normalize a phone number to last 10 digits."""
    digits = _NON_DIGIT_RE.sub("", raw)
    # Strip leading country code (1 for US/CA)
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    return digits[-10:] if len(digits) >= 10 else digits


def normalize_email(raw: str) -> str:
    """Normalize an email address."""
    return raw.strip().lower()


def format_phone_number(identifier: str) -> str:
    """Render North American numbers as ``(555) 123-4567`` / ``+1 (555) 123-4567``.

    Anything that isn't 10 digits, or 11 digits with a leading 1, is returned
    unchanged.
    """
    digits = _NON_DIGIT_RE.sub("", identifier)
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    if len(digits) == 11 and digits[0] == "1":
        return f"+1 ({digits[1:4]}) {digits[4:7]}-{digits[7:]}"
    return identifier
