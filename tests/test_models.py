"""Tests for domain models."""

from datetime import date

import pytest

from conftest import make_record
from ramadan_timer.domain.models import (
    AppSettings,
    CalculationMethod,
    Location,
    NotificationKind,
    NotificationPreferences,
    adjust_hijri_date,
)


class TestLocation:
    """Location model tests."""

    def test_valid_location(self) -> None:
        """Test valid location creation."""
        loc = Location(latitude=21.4225, longitude=39.8262, city="Mecca")
        assert loc.latitude == 21.4225
        assert loc.longitude == 39.8262
        assert loc.city == "Mecca"

    def test_invalid_latitude(self) -> None:
        """Test invalid latitude raises error."""
        with pytest.raises(ValueError, match="Invalid latitude"):
            Location(latitude=91.0, longitude=29.0)

    def test_invalid_longitude(self) -> None:
        """Test invalid longitude raises error."""
        with pytest.raises(ValueError, match="Invalid longitude"):
            Location(latitude=41.0, longitude=181.0)

    def test_location_immutable(self) -> None:
        """Test location is immutable."""
        loc = Location(latitude=41.0, longitude=29.0)
        with pytest.raises(Exception):  # FrozenInstanceError
            loc.latitude = 42.0  # type: ignore

    def test_dict_roundtrip(self) -> None:
        loc = Location(latitude=24.8607, longitude=67.0011, city="Karachi")
        assert Location.from_dict(loc.to_dict()) == loc

    def test_from_dict_without_city(self) -> None:
        loc = Location.from_dict({"latitude": "33.6844", "longitude": "73.0479"})
        assert loc.latitude == 33.6844
        assert loc.city == ""


class TestCalculationMethod:
    """CalculationMethod enum tests."""

    def test_method_ids(self) -> None:
        """Test upstream identifiers."""
        assert CalculationMethod.KARACHI.method_id == 1
        assert CalculationMethod.ISNA.method_id == 2
        assert CalculationMethod.MWL.method_id == 3
        assert CalculationMethod.MAKKAH.method_id == 4
        assert CalculationMethod.EGYPT.method_id == 5
        assert CalculationMethod.TEHRAN.method_id == 7
        assert CalculationMethod.SHIA.method_id == 0

    def test_display_names(self) -> None:
        for method in CalculationMethod:
            assert method.display_name

    def test_unknown_method(self) -> None:
        with pytest.raises(ValueError):
            CalculationMethod("hanafi")


class TestDayRecord:
    """DayRecord tests."""

    def test_hijri_for_language(self) -> None:
        record = make_record(date(2024, 3, 11))
        assert record.hijri_for_language("en") == "1 Ramaḍān, 1445 AH"
        assert record.hijri_for_language("hi") == "1 Ramaḍān, 1445 AH"
        assert record.hijri_for_language("ar") == "1 رَمَضان, 1445"
        assert record.hijri_for_language("ur") == "1 رَمَضان, 1445"


class TestNotificationPreferences:
    """Notification switches."""

    def test_defaults(self) -> None:
        prefs = NotificationPreferences()
        assert prefs.enabled is False
        assert prefs.lead_minutes == 15

    def test_master_switch_gates_kinds(self) -> None:
        prefs = NotificationPreferences(enabled=False, sehri_enabled=True, iftar_enabled=True)
        assert prefs.is_kind_enabled(NotificationKind.SEHRI) is False
        assert prefs.is_kind_enabled(NotificationKind.IFTAR) is False

    def test_kind_switches(self) -> None:
        prefs = NotificationPreferences(enabled=True, sehri_enabled=True, iftar_enabled=False)
        assert prefs.is_kind_enabled(NotificationKind.SEHRI) is True
        assert prefs.is_kind_enabled(NotificationKind.IFTAR) is False

    def test_negative_lead_rejected(self) -> None:
        with pytest.raises(ValueError):
            NotificationPreferences(lead_minutes=-1)

    def test_kind_tags(self) -> None:
        assert NotificationKind.SEHRI.tag == "sehri-notification"
        assert NotificationKind.IFTAR.tag == "iftar-notification"


class TestAppSettings:
    """AppSettings validation."""

    def test_defaults(self) -> None:
        settings = AppSettings()
        assert settings.location is None
        assert settings.language == "en"
        assert settings.calculation_method is CalculationMethod.KARACHI
        assert settings.hijri_adjustment == 0

    def test_unsupported_language(self) -> None:
        with pytest.raises(ValueError, match="Unsupported language"):
            AppSettings(language="fr")

    @pytest.mark.parametrize("adjustment", [-3, 3])
    def test_adjustment_out_of_range(self, adjustment: int) -> None:
        with pytest.raises(ValueError):
            AppSettings(hijri_adjustment=adjustment)


class TestAdjustHijriDate:
    """Hijri display offset."""

    def test_zero_adjustment_is_identity(self) -> None:
        assert adjust_hijri_date("15 Ramaḍān, 1445 AH", 0) == "15 Ramaḍān, 1445 AH"

    def test_shift_forward(self) -> None:
        assert adjust_hijri_date("15 Ramaḍān, 1445 AH", 1) == "16 Ramaḍān, 1445 AH"

    def test_shift_backward(self) -> None:
        assert adjust_hijri_date("15 Ramaḍān, 1445 AH", -2) == "13 Ramaḍān, 1445 AH"

    def test_wraps_below_one_without_changing_month(self) -> None:
        assert adjust_hijri_date("1 Ramaḍān, 1445 AH", -1) == "30 Ramaḍān, 1445 AH"

    def test_wraps_above_thirty_without_changing_month(self) -> None:
        assert adjust_hijri_date("29 Ramaḍān, 1445 AH", 2) == "1 Ramaḍān, 1445 AH"

    def test_arabic_string(self) -> None:
        assert adjust_hijri_date("10 رَمَضان, 1445", 1) == "11 رَمَضان, 1445"

    def test_unparseable_string_unchanged(self) -> None:
        assert adjust_hijri_date("Ramadan 1445", 2) == "Ramadan 1445"
