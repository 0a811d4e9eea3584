"""Pydantic schemas for API."""

from datetime import date, datetime
from typing import Annotated

from pydantic import BaseModel, Field

from ramadan_timer.domain.models import ActivePeriod, CalculationMethod


class LocationSchema(BaseModel):
    """Coordinates."""

    latitude: Annotated[float, Field(ge=-90, le=90, description="Latitude")]
    longitude: Annotated[float, Field(ge=-180, le=180, description="Longitude")]
    city: str = Field(default="", description="City name")


class ManualLocationRequest(BaseModel):
    """User-entered coordinates; validated by the location service."""

    latitude: str | float
    longitude: str | float


class NotificationPreferencesSchema(BaseModel):
    """Notification switches."""

    enabled: bool = False
    sehri_enabled: bool = False
    iftar_enabled: bool = False
    lead_minutes: Annotated[int, Field(ge=0, le=120, default=15)]


class SettingsSchema(BaseModel):
    """All settings."""

    location: LocationSchema | None = None
    location_permission_granted: bool = False
    language: str = "en"
    calculation_method: CalculationMethod = CalculationMethod.KARACHI
    hijri_adjustment: Annotated[int, Field(ge=-2, le=2, default=0)]
    notifications: NotificationPreferencesSchema = Field(
        default_factory=NotificationPreferencesSchema
    )


class SettingsUpdateSchema(BaseModel):
    """Settings update (partial update)."""

    language: str | None = None
    calculation_method: CalculationMethod | None = None
    hijri_adjustment: Annotated[int | None, Field(ge=-2, le=2)] = None
    notifications: NotificationPreferencesSchema | None = None


class DayTimesSchema(BaseModel):
    """One cached day."""

    date: date
    sehri: str  # HH:MM
    iftar: str  # HH:MM
    gregorian_date: str
    hijri_date: str
    method_name: str


class CurrentStateSchema(BaseModel):
    """What the timer shows now."""

    current_time: str
    current_date: str
    location: LocationSchema | None
    has_times: bool
    is_next_day: bool
    active_period: ActivePeriod | None = None
    sehri: str | None = None
    iftar: str | None = None
    target_time: str | None = None
    countdown: str = "00:00:00"
    gregorian_date: str = ""
    hijri_date: str = ""
    method_name: str = ""
    rtl: bool = False


class ScheduledJobSchema(BaseModel):
    """Scheduled job."""

    job_id: str
    run_time: str
    kind: str


class SystemStatusSchema(BaseModel):
    """System status."""

    version: str
    uptime: str
    scheduler_running: bool
    scheduled_jobs_count: int
    cached_days: int
    pending_backfills: int
    last_refresh: datetime | None = None
    last_notification: datetime | None = None


class ApiResponse(BaseModel):
    """Generic API response."""

    success: bool
    message: str
    data: dict | list | None = None
