"""Testes dos modelos de disponibilidade e de agenda do provider."""

from __future__ import annotations

import datetime as dt

import pytest
from pydantic import ValidationError

from app.domain.appointment import AppointmentType
from app.domain.availability import (
    AvailabilityException,
    DayAvailability,
    SessionPolicy,
    TimeInterval,
    WeeklyAvailability,
    format_time_of_day,
    parse_time_of_day,
)
from app.domain.provider import ProviderSchedule


class TestTimeOfDay:
    @pytest.mark.parametrize(
        ("text", "minutes"),
        [("00:00", 0), ("09:15", 555), ("9:05", 545), ("23:59", 1439), ("24:00", 1440)],
    )
    def test_parse(self, text: str, minutes: int) -> None:
        assert parse_time_of_day(text) == minutes

    @pytest.mark.parametrize("text", ["24:01", "25:00", "9h", "12:60", ""])
    def test_parse_rejects_malformed(self, text: str) -> None:
        with pytest.raises(ValueError, match="Horário inválido"):
            parse_time_of_day(text)

    def test_format(self) -> None:
        assert format_time_of_day(555) == "09:15"
        assert format_time_of_day(1440) == "24:00"


class TestTimeInterval:
    def test_accepts_strings_and_serializes_back(self) -> None:
        interval = TimeInterval(start="09:00", end="10:30")

        assert (interval.start, interval.end) == (540, 630)
        assert interval.duration_minutes == 90
        assert interval.model_dump() == {"start": "09:00", "end": "10:30"}

    def test_start_must_precede_end(self) -> None:
        with pytest.raises(ValidationError):
            TimeInterval(start="10:00", end="10:00")

    def test_contains(self) -> None:
        outer = TimeInterval(start="09:00", end="12:00")

        assert outer.contains(TimeInterval(start="11:00", end="12:00"))
        assert not outer.contains(TimeInterval(start="11:30", end="12:30"))


class TestDayAvailability:
    def test_intervals_are_sorted(self) -> None:
        day = DayAvailability(
            intervals=[{"start": "14:00", "end": "18:00"}, {"start": "09:00", "end": "12:00"}]
        )
        assert [i.label() for i in day.intervals] == ["09:00-12:00", "14:00-18:00"]

    def test_overlapping_intervals_are_rejected(self) -> None:
        with pytest.raises(ValidationError, match="sobrepostos"):
            DayAvailability(
                intervals=[
                    {"start": "09:00", "end": "12:00"},
                    {"start": "11:00", "end": "13:00"},
                ]
            )


class TestWeeklyAvailability:
    def test_weekend_is_off_by_default(self) -> None:
        weekly = WeeklyAvailability()
        assert weekly.for_weekday(0).is_available
        assert not weekly.for_weekday(5).is_available
        assert not weekly.for_weekday(6).is_available

    def test_unknown_timezone_is_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Timezone desconhecida"):
            WeeklyAvailability(timezone="Mars/Olympus")


class TestSessionPolicy:
    def test_defaults(self) -> None:
        policy = SessionPolicy()
        assert policy.default_duration_minutes == 60
        assert policy.break_between_sessions_minutes == 15
        assert policy.max_appointments_per_day == 8
        assert policy.advance_booking_days == 30
        assert policy.cancellation_policy.min_notice_hours == 24

    @pytest.mark.parametrize("duration", [10, 181])
    def test_duration_bounds(self, duration: int) -> None:
        with pytest.raises(ValidationError):
            SessionPolicy(default_duration_minutes=duration)


class TestProviderSchedule:
    def test_duplicate_exception_dates_are_rejected(self) -> None:
        day = dt.date(2026, 3, 2)
        with pytest.raises(ValidationError, match="duplicada"):
            ProviderSchedule(
                provider_id="prov-1",
                exceptions=[AvailabilityException(date=day), AvailabilityException(date=day)],
            )

    def test_with_exception_replaces_same_date(self) -> None:
        day = dt.date(2026, 3, 2)
        schedule = ProviderSchedule(
            provider_id="prov-1", exceptions=[AvailabilityException(date=day, reason="ferias")]
        )

        updated = schedule.with_exception(AvailabilityException(date=day, is_available=True))

        assert len(updated.exceptions) == 1
        assert updated.exception_for(day) is not None
        assert updated.exception_for(day).is_available
        assert schedule.exception_for(day).reason == "ferias"

    def test_timezone_defaults_without_availability(self) -> None:
        schedule = ProviderSchedule(provider_id="prov-1")
        assert schedule.timezone == "Asia/Ho_Chi_Minh"

    def test_offers_all_types_by_default(self) -> None:
        schedule = ProviderSchedule(provider_id="prov-1")
        assert all(schedule.offers(item) for item in AppointmentType)

    def test_round_trip_through_json(self) -> None:
        schedule = ProviderSchedule(
            provider_id="prov-1",
            availability=WeeklyAvailability(),
            exceptions=[AvailabilityException(date=dt.date(2026, 3, 2))],
            offered_types=[AppointmentType.ONLINE],
        )

        restored = ProviderSchedule.model_validate_json(schedule.model_dump_json())

        assert restored == schedule
