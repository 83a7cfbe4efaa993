"""Schema package for community reports and user profiles.

Primary exports:
- Report: A stored community report (read by the corroboration scorer)
- NewReport: Validated submission payload
- Profile: User profile with credibility counter
- CredibilitySummary: Row of a batch credibility lookup

Usage:
    from credibility_system.data_management.schemas import NewReport
    payload = NewReport(user_id="user-a", problem="Flooded street", type="flood")
"""

from credibility_system.data_management.schemas.report_schema import (
    NewReport,
    Report,
)
from credibility_system.data_management.schemas.profile_schema import (
    EDITABLE_PROFILE_FIELDS,
    CredibilitySummary,
    Profile,
    coerce_credibility,
)

__all__ = [
    # Reports
    "Report",
    "NewReport",
    # Profiles
    "Profile",
    "CredibilitySummary",
    "EDITABLE_PROFILE_FIELDS",
    "coerce_credibility",
]
