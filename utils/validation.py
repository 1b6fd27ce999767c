"""
Validation utilities for booking input (phone numbers, slot dates and times)
"""
import re
from typing import Optional, Tuple

PHONE_DIGITS = 11

DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')
TIME_RE = re.compile(r'^\d{2}:\d{2}$')
# Catalog slots are stricter: real 24-hour clock times only
CLOCK_TIME_RE = re.compile(r'^([0-1][0-9]|2[0-3]):[0-5][0-9]$')


def digits_only(value: Optional[str]) -> str:
    return re.sub(r'\D', '', value or '')


def normalize_phone(value: Optional[str], label: str = "Phone number") -> Tuple[Optional[str], str]:
    """
    Strip everything but digits and require exactly 11 of them.
    Returns (digits, error_message).
    """
    digits = digits_only(value)
    if len(digits) != PHONE_DIGITS:
        return None, f"{label} must be exactly {PHONE_DIGITS} digits"
    return digits, ""


def is_valid_date(value: Optional[str]) -> bool:
    return isinstance(value, str) and bool(DATE_RE.match(value))


def is_valid_time(value: Optional[str]) -> bool:
    return isinstance(value, str) and bool(TIME_RE.match(value))


def is_valid_clock_time(value: Optional[str]) -> bool:
    return isinstance(value, str) and bool(CLOCK_TIME_RE.match(value))


def has_complete_slot(
    session_date: Optional[str],
    session_time: Optional[str],
    special_request_date: Optional[str],
    special_request_time: Optional[str],
) -> bool:
    """A confirmed-style booking needs either the session slot or the special request slot in full"""
    if session_date and session_time:
        return True
    return bool(special_request_date and special_request_time)


def invalid_dates(dates) -> list:
    return [d for d in (dates or []) if not isinstance(d, str) or not DATE_RE.match(d)]
