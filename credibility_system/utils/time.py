"""Relative time labels for report listings."""

from datetime import datetime, timezone
from typing import Optional


def time_ago(created_at: datetime, now: Optional[datetime] = None) -> str:
    """
    Human-readable age of a timestamp.

    Naive datetimes are treated as UTC. Future timestamps read as "Just now".

    Examples:
        >>> time_ago(now - timedelta(minutes=5), now)
        '5 min ago'
        >>> time_ago(now - timedelta(hours=1), now)
        '1 hour ago'
    """
    now = as_utc(now or datetime.now(timezone.utc))
    minutes = int((now - as_utc(created_at)).total_seconds() // 60)

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes} min ago"

    hours = minutes // 60
    if hours < 24:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"

    days = hours // 24
    return f"{days} day{'s' if days > 1 else ''} ago"


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
