"""Shared utilities: structured logging and relative time labels."""

from credibility_system.utils.time import as_utc, time_ago

__all__ = ["as_utc", "time_ago"]
