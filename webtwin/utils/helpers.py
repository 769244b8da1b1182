"""
Helper utilities
"""
from datetime import datetime, timezone
from typing import Any, Optional
import math

# Anything slower than an hour is not a real page load
MAX_TIMING_MS = 3_600_000.0


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Safely divide two numbers"""
    try:
        return numerator / denominator if denominator != 0 else default
    except (TypeError, ZeroDivisionError):
        return default


def sanitize_ms(value: Any) -> float:
    """
    Coerce an untrusted timing value (milliseconds) to a non-negative float.

    Absent, non-numeric, non-finite, negative and implausibly large
    (over MAX_TIMING_MS) values all become 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0 or number > MAX_TIMING_MS:
        return 0.0
    return number


def parse_client_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a client-supplied timestamp into a naive UTC datetime.

    Accepts epoch milliseconds (what rum.js sends), ISO-8601 strings or
    datetimes (stored rows).
    Returns None when the value can't be interpreted.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc).replace(tzinfo=None)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.isdigit():
            return parse_client_timestamp(int(text))
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed

    return None


def utcnow() -> datetime:
    """Naive UTC now, matching the DateTime columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
