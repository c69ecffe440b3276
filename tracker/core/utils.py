"""
Utility helpers shared across repositories/services.
"""

from datetime import datetime, timezone
import uuid


def new_id() -> str:
    """Return a fresh globally unique identifier."""
    return str(uuid.uuid4())


def utc_now_iso() -> str:
    """
    Current instant as an ISO-8601 UTC string with millisecond precision,
    e.g. ``2024-05-01T12:30:00.123Z``.
    """
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"
