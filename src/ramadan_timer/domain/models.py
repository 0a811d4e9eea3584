"""Domain models and value objects."""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Self

SUPPORTED_LANGUAGES = ("en", "ar", "ur", "hi")
RTL_LANGUAGES = frozenset({"ar", "ur"})

HIJRI_ADJUSTMENT_RANGE = range(-2, 3)

# Hijri months are 29 or 30 days; the display offset assumes 30.
HIJRI_DAYS_IN_MONTH = 30

_HIJRI_DATE_PATTERN = re.compile(r"^(\d+)\s+([^,]+),\s+(\d+)(.*)$")


class CalculationMethod(str, Enum):
    """Published conventions for computing prayer times."""

    KARACHI = "karachi"
    ISNA = "isna"
    MWL = "mwl"
    MAKKAH = "makkah"
    EGYPT = "egypt"
    TEHRAN = "tehran"
    SHIA = "shia"

    @property
    def method_id(self) -> int:
        """Upstream API method identifier."""
        ids = {
            CalculationMethod.KARACHI: 1,
            CalculationMethod.ISNA: 2,
            CalculationMethod.MWL: 3,
            CalculationMethod.MAKKAH: 4,
            CalculationMethod.EGYPT: 5,
            CalculationMethod.TEHRAN: 7,
            CalculationMethod.SHIA: 0,
        }
        return ids[self]

    @property
    def display_name(self) -> str:
        """Full name of the issuing authority."""
        names = {
            CalculationMethod.KARACHI: "University of Islamic Sciences, Karachi",
            CalculationMethod.ISNA: "Islamic Society of North America",
            CalculationMethod.MWL: "Muslim World League",
            CalculationMethod.MAKKAH: "Umm al-Qura, Makkah",
            CalculationMethod.EGYPT: "Egyptian General Authority of Survey",
            CalculationMethod.TEHRAN: "Institute of Geophysics, University of Tehran",
            CalculationMethod.SHIA: "Shia Ithna-Ashari, Leva Research Institute, Qum",
        }
        return names[self]


class ActivePeriod(str, Enum):
    """Which countdown is currently shown."""

    SEHRI = "sehri"
    IFTAR = "iftar"


class NotificationKind(str, Enum):
    """Notification kinds; at most one live schedule per kind."""

    SEHRI = "sehri"
    IFTAR = "iftar"

    @property
    def tag(self) -> str:
        """Tag used by the sink to replace rather than stack notifications."""
        return f"{self.value}-notification"


class PermissionState(str, Enum):
    """Permission states reported by a geolocation provider."""

    GRANTED = "granted"
    DENIED = "denied"
    PROMPT = "prompt"


@dataclass(frozen=True)
class Location:
    """Coordinates (immutable value object)."""

    latitude: float
    longitude: float
    city: str = ""

    def __post_init__(self) -> None:
        """Validate coordinates."""
        if not -90 <= self.latitude <= 90:
            raise ValueError(f"Invalid latitude: {self.latitude}")
        if not -180 <= self.longitude <= 180:
            raise ValueError(f"Invalid longitude: {self.longitude}")

    def to_dict(self) -> dict[str, float | str]:
        return {"latitude": self.latitude, "longitude": self.longitude, "city": self.city}

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        return cls(
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            city=data.get("city", "") or "",
        )


@dataclass(frozen=True)
class DayRecord:
    """One calendar day's Sehri and Iftar times."""

    date: date
    sehri_time: datetime
    iftar_time: datetime
    method_name: str
    method_id: int
    gregorian_date: str
    hijri_date: str
    hijri_date_ar: str
    timestamp: int

    def hijri_for_language(self, language: str) -> str:
        """Hijri date string suited to the display language."""
        return self.hijri_date_ar if language in RTL_LANGUAGES else self.hijri_date


@dataclass(frozen=True)
class SelectionState:
    """Result of choosing the currently relevant day."""

    is_next_day: bool = False
    active: DayRecord | None = None


@dataclass
class NotificationPreferences:
    """Notification switches and lead time."""

    enabled: bool = False
    sehri_enabled: bool = False
    iftar_enabled: bool = False
    lead_minutes: int = 15

    def __post_init__(self) -> None:
        if self.lead_minutes < 0:
            raise ValueError(f"Invalid lead minutes: {self.lead_minutes}")

    def is_kind_enabled(self, kind: NotificationKind) -> bool:
        """Is the given notification kind switched on?"""
        if not self.enabled:
            return False
        if kind is NotificationKind.SEHRI:
            return self.sehri_enabled
        return self.iftar_enabled


@dataclass
class AppSettings:
    """Everything persisted across sessions."""

    location: Location | None = None
    location_permission_granted: bool = False
    language: str = "en"
    calculation_method: CalculationMethod = CalculationMethod.KARACHI
    hijri_adjustment: int = 0
    notifications: NotificationPreferences = field(default_factory=NotificationPreferences)

    def __post_init__(self) -> None:
        if self.language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported language: {self.language}")
        if self.hijri_adjustment not in HIJRI_ADJUSTMENT_RANGE:
            raise ValueError(f"Invalid Hijri adjustment: {self.hijri_adjustment}")


def adjust_hijri_date(hijri_date: str, adjustment: int) -> str:
    """
    Shift the day of a Hijri date string for display.

    The month and year are never changed: a day pushed past 30 or below 1
    wraps within the same month.
    """
    if adjustment == 0:
        return hijri_date

    match = _HIJRI_DATE_PATTERN.match(hijri_date)
    if match is None:
        return hijri_date

    day, month, year, suffix = match.groups()
    day_num = int(day) + adjustment
    if day_num <= 0:
        day_num += HIJRI_DAYS_IN_MONTH
    elif day_num > HIJRI_DAYS_IN_MONTH:
        day_num -= HIJRI_DAYS_IN_MONTH

    return f"{day_num} {month}, {year}{suffix}"
