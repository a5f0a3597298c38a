"""
Small helpers shared across Compendium.

Ids, timestamps and display formatting.
"""

import secrets
import string
import time
from datetime import date, datetime, timezone

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_id(prefix: str) -> str:
    """Generate an entity id like ``note_1768427187928_k3j9x0a1b``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


def utc_now_iso() -> str:
    """Current UTC time as ISO 8601 with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_date(value: str | None) -> date | None:
    """Parse the calendar date part of an ISO string. None if unparseable."""
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def truncate(text: str | None, length: int) -> str:
    """Cut text to length characters, appending '...' when shortened."""
    if not text:
        return ""
    if len(text) > length:
        return text[:length] + "..."
    return text


def progress_class(progress: int) -> str:
    """Bucket goal progress into low, medium or high."""
    if progress < 30:
        return "low"
    if progress < 70:
        return "medium"
    return "high"


def format_month(value: str) -> str:
    """Format an ISO date as 'January 2026'. Empty string if unparseable."""
    parsed = parse_date(value)
    if parsed is None:
        return ""
    return parsed.strftime("%B %Y")


def format_time(value: str) -> str:
    """Format 'HH:MM' (24h) as '02:30 PM'. Returns the input if unparseable."""
    try:
        parsed = datetime.strptime(value, "%H:%M")
    except (TypeError, ValueError):
        return value
    return parsed.strftime("%I:%M %p")
