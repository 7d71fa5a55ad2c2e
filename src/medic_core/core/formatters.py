"""
Medic Core Formatters

Time and identifier helpers shared by the storage layer and the services.
All services take an injectable clock returning epoch seconds so expiry and
identifier generation can be driven deterministically from tests.
"""

import secrets
import string
import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Optional

Clock = Callable[[], float]
"""Callable returning the current time as epoch seconds."""

system_clock: Clock = time.time

_BASE36_DIGITS = string.digits + string.ascii_lowercase


# =============================================================================
# Timestamps
# =============================================================================


def epoch_millis(now: float) -> int:
    """Convert epoch seconds to integer milliseconds."""
    return int(round(now * 1000))


def format_timestamp(now: float) -> str:
    """
    Format epoch seconds as an ISO-8601 UTC string with milliseconds.

    Examples:
        >>> format_timestamp(0)
        '1970-01-01T00:00:00.000Z'
    """
    dt = datetime.fromtimestamp(now, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> Optional[datetime]:
    """
    Parse a timestamp written by format_timestamp (or without milliseconds).

    Returns:
        datetime with UTC timezone, or None if parsing fails
    """
    if not value:
        return None

    for fmt in ("%Y-%m-%dT%H:%M:%S.%fZ", "%Y-%m-%dT%H:%M:%SZ"):
        try:
            return datetime.strptime(value, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


# =============================================================================
# Identifiers
# =============================================================================


def to_base36(value: int) -> str:
    """
    Encode a non-negative integer in lower-case base 36.

    Examples:
        >>> to_base36(35)
        'z'
        >>> to_base36(36)
        '10'
    """
    if value < 0:
        raise ValueError("base36 encoding requires a non-negative integer")
    if value == 0:
        return "0"

    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return "".join(reversed(digits))


def generate_record_id(now: float) -> str:
    """Time-derived record id with a random base-36 suffix."""
    suffix = "".join(secrets.choice(_BASE36_DIGITS) for _ in range(11))
    return to_base36(epoch_millis(now)) + suffix


def sequence_number(prefix: str, now: float) -> str:
    """
    Human-readable request number: prefix + last six digits of epoch ms.

    Examples:
        >>> sequence_number("MED", 1700000123.5)
        'MED-123500'
    """
    return f"{prefix}-{str(epoch_millis(now))[-6:]}"
