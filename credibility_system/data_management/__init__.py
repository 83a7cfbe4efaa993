"""Data management package for the credibility system.

Provides storage adapters and schemas for:
- Reports (Report, NewReport) - community reports, read by the scorer
- Profiles (Profile) - per-user credibility counters

Storage adapters:
- ReportStore: In-memory report persistence with optional JSON file
- ProfileStore: In-memory profile persistence with optional JSON file
- SupabaseStore: Hosted Postgres REST adapter implementing both contracts
"""

from credibility_system.data_management.errors import (
    RecordNotFoundError,
    ReportValidationError,
    StoreError,
    StoreUnavailableError,
)
from credibility_system.data_management.profile_store import ProfileStore
from credibility_system.data_management.report_store import ReportStore
from credibility_system.data_management.supabase_store import SupabaseStore

__all__ = [
    "ReportStore",
    "ProfileStore",
    "SupabaseStore",
    "StoreError",
    "StoreUnavailableError",
    "RecordNotFoundError",
    "ReportValidationError",
]
