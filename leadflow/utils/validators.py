"""Deterministic validators and sanitizers for CRM input fields."""

from __future__ import annotations

import re

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PHONE_DIGITS = 8


def sanitize_text(value: str | None, max_len: int = 20000) -> str:
    """Sanitize free-form content before persistence."""
    if value is None:
        return ""
    cleaned = str(value).replace("\x00", "").strip()
    return cleaned[:max_len]


def optional_text(value: str | None, max_len: int = 20000) -> str | None:
    """Like `sanitize_text` but maps blank input to None."""
    cleaned = sanitize_text(value, max_len=max_len)
    return cleaned or None


def normalize_match_text(value: str | None) -> str:
    """Case-folded, trimmed text used for rule comparisons."""
    return sanitize_text(value).casefold()


def phone_digits(phone: str | None) -> str:
    return re.sub(r"\D", "", phone or "")


def is_valid_phone(phone: str | None) -> bool:
    """A phone is valid when it carries at least eight digits."""
    return len(phone_digits(phone)) >= MIN_PHONE_DIGITS


def is_valid_email(email: str | None) -> bool:
    if not email:
        return False
    return bool(EMAIL_RE.match(email.strip()))


def format_phone_number(phone: str | None) -> str:
    """Group nine-digit numbers as `XXX XXX XXX`; anything else is returned as-is."""
    if not phone:
        return ""
    digits = phone_digits(phone)
    if len(digits) == 9:
        return f"{digits[0:3]} {digits[3:6]} {digits[6:9]}"
    return phone
