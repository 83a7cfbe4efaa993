"""Community report schemas.

Reports are filed by signed-in users and are owned by the report store.
The scorer only reads them; coordinates and category are optional because
users may decline location sharing or skip the category picker.

Hard requirements: id, user_id, problem, created_at.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Report(BaseModel):
    """A stored community report.

    Attributes:
        id: Opaque unique identifier assigned by the store.
        user_id: Opaque identifier of the submitting user.
        problem: Free-text description of the issue.
        type: Optional category tag (traffic, pollution, flood, other).
        lat: Optional latitude in decimal degrees.
        lng: Optional longitude in decimal degrees.
        created_at: Submission timestamp.
        number: Optional contact number left by the reporter.
        location: Optional free-text place name.
    """

    id: str = Field(..., description="Report identifier")
    user_id: str = Field(..., description="Submitting user")
    problem: str = Field(..., description="Free-text issue description")
    type: Optional[str] = Field(None, description="Category tag")
    lat: Optional[float] = Field(None, description="Latitude")
    lng: Optional[float] = Field(None, description="Longitude")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Submission timestamp",
    )
    number: Optional[str] = Field(None, description="Contact number")
    location: Optional[str] = Field(None, description="Free-text place")

    # Hosted tables may use bigint keys; ids stay opaque strings here
    model_config = {
        "extra": "ignore",
        "coerce_numbers_to_str": True,
        "json_schema_extra": {
            "examples": [
                {
                    "id": "5f0c6a4e-2b7d-4f57-9f43-0e6a8c1d2b11",
                    "user_id": "user-a",
                    "problem": "Street flooded after heavy rain",
                    "type": "flood",
                    "lat": 21.0285,
                    "lng": 105.8542,
                    "created_at": "2025-06-01T08:30:00Z",
                }
            ]
        },
    }

    @property
    def has_coordinates(self) -> bool:
        """True when both coordinates are present (0.0 is a valid coordinate)."""
        return self.lat is not None and self.lng is not None


class NewReport(BaseModel):
    """Submission payload for a new report.

    Strings are trimmed; user_id and problem must be non-blank.
    Coordinates, when given, must be valid WGS84 degrees.
    """

    user_id: str = Field(..., description="Submitting user")
    problem: str = Field(..., description="Free-text issue description")
    type: Optional[str] = None
    lat: Optional[float] = Field(None, ge=-90.0, le=90.0)
    lng: Optional[float] = Field(None, ge=-180.0, le=180.0)
    number: Optional[str] = None
    location: Optional[str] = None

    @field_validator("user_id", "problem")
    @classmethod
    def _required_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("type", "number", "location")
    @classmethod
    def _optional_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None

    def to_report(self, report_id: str, created_at: Optional[datetime] = None) -> Report:
        """Build the stored form of this submission."""
        return Report(
            id=report_id,
            created_at=created_at or datetime.now(timezone.utc),
            **self.model_dump(),
        )
