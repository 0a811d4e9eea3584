"""Domain layer - Business entities and value objects."""

from ramadan_timer.domain.errors import (
    InvalidInput,
    LocationTimeout,
    LocationUnavailable,
    NetworkError,
    ParseError,
    PermissionDenied,
    RamadanTimerError,
)
from ramadan_timer.domain.models import (
    ActivePeriod,
    AppSettings,
    CalculationMethod,
    DayRecord,
    Location,
    NotificationKind,
    NotificationPreferences,
    PermissionState,
    SelectionState,
)

__all__ = [
    "ActivePeriod",
    "AppSettings",
    "CalculationMethod",
    "DayRecord",
    "InvalidInput",
    "Location",
    "LocationTimeout",
    "LocationUnavailable",
    "NetworkError",
    "NotificationKind",
    "NotificationPreferences",
    "ParseError",
    "PermissionDenied",
    "PermissionState",
    "RamadanTimerError",
    "SelectionState",
]
