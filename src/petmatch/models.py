"""Core data models for reports and match alerts."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from petmatch.utils.time import to_datetime


class ReportType(str, Enum):
    LOST = "lost"
    FOUND = "found"


class ReportStatus(str, Enum):
    OPEN = "open"
    RESOLVED = "resolved"


class AlertStatus(str, Enum):
    PENDING = "pending"
    DISMISSED = "dismissed"
    CONFIRMED = "confirmed"


class MatchLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class VisualTier(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    NONE = "none"


class Location(BaseModel):
    """Structured address with optional coordinates."""

    model_config = ConfigDict(extra="ignore")

    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class Report(BaseModel):
    """One user-submitted lost or found sighting."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    report_type: ReportType
    status: ReportStatus = ReportStatus.OPEN
    reporter_id: str
    species: str = ""
    breed: str = ""
    color: str = ""
    sex: str = ""
    location: Location = Field(default_factory=Location)
    occurred_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    image_vector: Optional[list[float]] = None
    photos: list[str] = Field(default_factory=list)

    @field_validator("occurred_at", "created_at", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: object) -> Optional[datetime]:
        if value is None or value == "":
            return None
        parsed = to_datetime(value)
        if parsed is None:
            raise ValueError(f"Unusable timestamp: {value!r}")
        return parsed

    @field_validator("species", "breed", "color", "sex", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("image_vector", mode="before")
    @classmethod
    def _empty_vector_to_none(cls, value: object) -> object:
        if isinstance(value, (list, tuple)) and not value:
            return None
        return value

    @property
    def primary_photo(self) -> Optional[str]:
        return self.photos[0] if self.photos else None

    @property
    def event_time(self) -> Optional[datetime]:
        """When the animal was lost/found, falling back to record creation."""
        return self.occurred_at or self.created_at


class MatchDetails(BaseModel):
    """Which criteria contributed to a score, for user-facing explanation."""

    species: bool = False
    breed: bool = False
    color: bool = False
    sex: bool = False
    visual: VisualTier = VisualTier.NONE
    visual_similarity: Optional[float] = None
    location: bool = False
    distance_km: Optional[float] = None
    timeframe: bool = False
    days_difference: Optional[int] = None
    verification_probability: Optional[int] = None
    verification_reason: Optional[str] = None


class ScoreResult(BaseModel):
    """Output of scoring one lost/found pair."""

    score: int = Field(ge=0, le=100)
    match_level: MatchLevel
    match_details: MatchDetails = Field(default_factory=MatchDetails)


class MatchAlert(BaseModel):
    """A persisted candidate pairing shown to the lost report's owner."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    user_id: str
    lost_report_id: str
    found_report_id: str
    match_score: int = Field(ge=0, le=100)
    match_level: MatchLevel
    match_details: MatchDetails = Field(default_factory=MatchDetails)
    status: AlertStatus = AlertStatus.PENDING
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AlertView(BaseModel):
    """An alert together with the two reports it pairs."""

    alert: MatchAlert
    lost_report: Optional[Report] = None
    found_report: Optional[Report] = None
