# lifeline/models.py
# ------------------------------------------------------------
# Core domain models for the incident lifecycle engine.
#
# Python attributes are snake_case; the wire format is camelCase
# (isOffline, audioUrl, assignedTeam, ...) to match the dashboards.
# ------------------------------------------------------------

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel
from typing import Annotated, Optional, Literal
from datetime import datetime, timezone
import uuid


# -------------------------------
# Shared helpers & enums
# -------------------------------
Priority = Literal["Critical", "High", "Moderate", "Low"]
SOSStatus = Literal["New", "Assigned", "Rescued", "Resolved"]
TeamStatus = Literal["En-route", "On-site", "Returning"]
ZoneSeverity = Literal["Fatal", "High", "Moderate"]


def new_id(prefix: str) -> str:
    """
    Readable, prefixed IDs for UI/log consumers.
    Example: SIGNAL-3F9A1C2B1E07
    """
    return f"{prefix}-{uuid.uuid4().hex[:12].upper()}"


def utcnow() -> datetime:
    """
    Always return timezone-aware UTC datetime.
    """
    return datetime.now(timezone.utc)


def iso_utc(dt: datetime) -> str:
    """
    Always return UTC ISO string with 'Z' suffix.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


UtcDatetime = Annotated[
    datetime,
    PlainSerializer(iso_utc, return_type=str, when_used="json"),
]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# -------------------------------
# Rescue team (embedded in SOS)
# -------------------------------
class AssignedTeam(CamelModel):
    id: str = Field(default_factory=lambda: new_id("TEAM"))
    name: str

    lat: float
    lng: float

    status: TeamStatus = "En-route"
    eta: Optional[str] = None


# -------------------------------
# SOS signal
# -------------------------------
class SOSSignal(CamelModel):
    """
    A victim's distress signal and its rescue progress.
    """

    id: str = Field(default_factory=lambda: new_id("SIGNAL"))
    timestamp: UtcDatetime = Field(default_factory=utcnow)

    lat: float
    lng: float
    message: str

    battery: int = 100
    is_offline: bool = False

    # assigned once by the classifier
    priority: Priority
    category: str

    status: SOSStatus = "New"

    audio_url: Optional[str] = None
    resolved_at: Optional[UtcDatetime] = None
    is_battery_optimized: Optional[bool] = None

    assigned_team: Optional[AssignedTeam] = None


# -------------------------------
# Danger zone
# -------------------------------
class DangerZone(CamelModel):
    """
    Circular hazard area (radius in meters).
    """

    id: str = Field(default_factory=lambda: new_id("ZONE"))
    timestamp: UtcDatetime = Field(default_factory=utcnow)

    lat: float
    lng: float
    radius: int

    severity: ZoneSeverity
    description: str
    author: str


# -------------------------------
# Rescue unit roster entry
# -------------------------------
class RescueUnit(CamelModel):
    id: str
    name: str
    unit_type: str
    vehicle: str
    personnel: int

    lat: float
    lng: float

    distance_km: Optional[float] = None


# -------------------------------
# Request payloads
# -------------------------------
class SOSSubmit(CamelModel):
    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)
    message: str = Field(min_length=1)

    battery: int = Field(default=100, ge=0, le=100)
    is_offline: bool = False
    audio_url: Optional[str] = None
    is_battery_optimized: Optional[bool] = None


class DangerZoneSubmit(CamelModel):
    type: Literal["danger-zone"] = "danger-zone"

    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)
    radius: Optional[int] = Field(default=None, gt=0)

    severity: ZoneSeverity
    # dashboards send the text as "message"
    description: str = Field(
        default="COMMUNITY ALERT: HARMFUL AREA REPORTED",
        validation_alias=AliasChoices("description", "message"),
    )
    author: Optional[str] = None


class SOSUpdate(CamelModel):
    id: str = Field(min_length=1)
    status: Optional[SOSStatus] = None
    team_name: Optional[str] = None
    audio_url: Optional[str] = None


class DeleteRequest(CamelModel):
    id: str = Field(min_length=1)
    # only "danger-zone" selects a zone; anything else deletes a signal
    type: Optional[str] = None
