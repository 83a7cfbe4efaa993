"""Profile and credibility schemas.

A profile row may not exist until the user's first credibility award;
stores create it on upsert with every other field at its default.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class Profile(BaseModel):
    """A user profile with its credibility counter.

    Attributes:
        user_id: Unique key, one profile per user.
        credibility: Non-negative credibility points.
        full_name: Display name.
        age: Free-text age (stored as text by the backend).
        job: Occupation.
        avatar_url: Public avatar URL.
        created_at: Row creation time.
        updated_at: Last modification time.
    """

    user_id: str
    credibility: int = Field(default=0, ge=0)
    full_name: Optional[str] = None
    age: Optional[str] = None
    job: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"extra": "ignore", "coerce_numbers_to_str": True}

    @field_validator("credibility", mode="before")
    @classmethod
    def _null_credibility(cls, value: Any) -> Any:
        return 0 if value is None else value


class CredibilitySummary(BaseModel):
    """One row of a batch credibility lookup."""

    user_id: str
    credibility: int = 0
    full_name: Optional[str] = None

    model_config = {"coerce_numbers_to_str": True}


# Fields a user may change through a profile update
EDITABLE_PROFILE_FIELDS = ("full_name", "age", "job", "avatar_url")


def coerce_credibility(value: Any) -> int:
    """Coerce a stored credibility value to int.

    The backend column is an integer, but older rows and some clients hand
    back strings or nulls. Anything unparsable counts as 0.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return 0
    return 0
