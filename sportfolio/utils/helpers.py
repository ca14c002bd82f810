"""
Helper utilities for the Sportfolio engine.

Common utility functions used across the application.
"""

import secrets
from datetime import datetime, timezone
from typing import Optional


def format_currency(amount: float, currency: str = "AUD", decimal_places: int = 2) -> str:
    """
    Format currency amounts for display.

    Args:
        amount: Amount to format
        currency: Currency code
        decimal_places: Number of decimal places

    Returns:
        Formatted currency string
    """
    try:
        return f"${amount:,.{decimal_places}f} {currency}"
    except (ValueError, TypeError):
        return f"${0:.{decimal_places}f} {currency}"


def generate_trade_id(now: datetime) -> str:
    """Millisecond timestamp plus a short random suffix, e.g. ``1767225600000_a3f9c1``."""
    return f"{int(now.timestamp() * 1000)}_{secrets.token_hex(3)}"


def parse_iso_datetime(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware datetime.

    A trailing ``Z`` is accepted and naive values are taken as UTC.

    Raises:
        ValueError: If the value is not a valid ISO-8601 timestamp
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Not an ISO-8601 timestamp: {value!r}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def deadline_passed(deadline: Optional[str], now: datetime) -> bool:
    """True when an ISO deadline is set and ``now`` is later than it."""
    if not deadline:
        return False
    return now > parse_iso_datetime(deadline)
