"""
Tests for the AvailabilityService orchestration layer.
"""

import asyncio
from typing import Dict, List

import pendulum
import pytest

from bookingslots.domain.engine import AvailabilityEngine
from bookingslots.domain.exceptions import ConfigError, InputError
from bookingslots.domain.models import (
    Appointment,
    AppointmentStatus,
    BlockedDate,
    DayStatus,
    WeeklyHourRule,
)
from bookingslots.services.availability import AvailabilityService

TZ = "Europe/Berlin"
MONDAY = pendulum.date(2024, 11, 25)
TUESDAY = pendulum.date(2024, 11, 26)
NOW = pendulum.parse("2024-11-20 08:00", tz=TZ)  # Wednesday


def at(clock: str, day: str = "2024-11-25") -> pendulum.DateTime:
    return pendulum.parse(f"{day} {clock}", tz=TZ)


class StubConfigSource:
    """Minimal stub matching ConfigSourceProtocol."""

    def __init__(self, rules: List[WeeklyHourRule], blocked: List[BlockedDate] = None):
        self._rules = rules
        self._blocked = blocked or []
        self.calls = 0

    async def get_weekly_hours(self):
        self.calls += 1
        return self._rules

    async def get_blocked_dates(self):
        return self._blocked


class StubAppointmentSource:
    """Minimal stub matching AppointmentSourceProtocol."""

    def __init__(self, appointments: List[Appointment]):
        self._appointments = appointments
        self.calls: List[Dict[str, str]] = []

    async def get_appointments(self, start_time, end_time):
        self.calls.append(
            {
                "start": start_time.to_datetime_string(),
                "end": end_time.to_datetime_string(),
            }
        )
        return [
            appointment
            for appointment in self._appointments
            if appointment.start_time < end_time and appointment.end_time > start_time
        ]


DEFAULT_RULES = [
    WeeklyHourRule(day_of_week=1, start_time="09:00", end_time="12:00", is_active=True),
    WeeklyHourRule(day_of_week=2, start_time="09:00", end_time="12:00", is_active=True),
    WeeklyHourRule(day_of_week=3, start_time="09:00", end_time="19:00", is_active=True),
    WeeklyHourRule(day_of_week=4, start_time="09:00", end_time="19:00", is_active=True),
    WeeklyHourRule(day_of_week=5, start_time="9am", end_time="19:00", is_active=True),
]

DEFAULT_APPOINTMENTS = [
    Appointment(start_time=at("09:00"), end_time=at("09:45")),
    Appointment(
        start_time=at("10:00"),
        end_time=at("11:00"),
        status=AppointmentStatus.CANCELLED,
    ),
    Appointment(start_time=at("09:00", "2024-11-26"), end_time=at("12:00", "2024-11-26")),
]


def _build_service(rules=None, blocked=None, appointments=None):
    config_source = StubConfigSource(DEFAULT_RULES if rules is None else rules, blocked)
    appointment_source = StubAppointmentSource(
        DEFAULT_APPOINTMENTS if appointments is None else appointments
    )
    service = AvailabilityService(
        config_source=config_source,
        appointment_source=appointment_source,
        engine=AvailabilityEngine(timezone=TZ),
    )
    return service, config_source, appointment_source


def _day(service, target_date, duration=30, now=NOW):
    return asyncio.run(
        service.get_day_availability(
            target_date=target_date,
            service_duration_minutes=duration,
            now=now,
        )
    )


class TestGetDayAvailability:
    """Tests for AvailabilityService.get_day_availability."""

    def test_uses_config_and_appointments(self):
        service, _, appointment_source = _build_service()

        result = _day(service, MONDAY)

        assert result.status == DayStatus.OPEN
        assert result.slots.morning == (
            at("09:45"), at("10:00"), at("10:30"), at("11:00"), at("11:30")
        )
        assert appointment_source.calls == [
            {"start": "2024-11-25 00:00:00", "end": "2024-11-26 00:00:00"}
        ]

    def test_fully_booked_day(self):
        service, _, _ = _build_service()

        result = _day(service, TUESDAY)

        assert result.status == DayStatus.FULL

    def test_blocked_day_skips_appointment_fetch(self):
        blocked = [BlockedDate(date=MONDAY, reason="Feriado")]
        service, _, appointment_source = _build_service(blocked=blocked)

        result = _day(service, MONDAY)

        assert result.status == DayStatus.BLOCKED
        assert result.reason == "Feriado"
        assert result.slots.is_empty
        assert appointment_source.calls == []

    def test_day_without_rule_is_closed(self):
        service, _, appointment_source = _build_service()

        result = _day(service, pendulum.date(2024, 11, 24))  # Sunday

        assert result.status == DayStatus.CLOSED
        assert appointment_source.calls == []

    def test_misconfigured_day_is_reported(self):
        service, _, _ = _build_service()

        result = _day(service, pendulum.date(2024, 11, 22))  # Friday

        assert result.status == DayStatus.MISCONFIGURED
        assert result.slots.is_empty

    def test_invalid_input_rejected_before_fetching(self):
        service, config_source, appointment_source = _build_service()

        with pytest.raises(InputError):
            _day(service, MONDAY, duration=0)

        assert config_source.calls == 0
        assert appointment_source.calls == []

    def test_duplicate_rules_raise_config_error(self):
        rules = DEFAULT_RULES + [WeeklyHourRule(day_of_week=1, is_active=True)]
        service, _, _ = _build_service(rules=rules)

        with pytest.raises(ConfigError, match="Duplicate"):
            _day(service, MONDAY)


class TestDayStrip:
    """Tests for AvailabilityService.get_day_strip."""

    def test_strip_is_clipped_to_today(self):
        service, _, appointment_source = _build_service()

        strip = asyncio.run(service.get_day_strip(selected_date=NOW.date(), now=NOW))

        assert [entry.date.isoformat() for entry in strip] == [
            "2024-11-20", "2024-11-21", "2024-11-22", "2024-11-23",
            "2024-11-24", "2024-11-25", "2024-11-26",
        ]
        assert appointment_source.calls == []

    def test_days_past_the_horizon_are_not_bookable(self):
        service, _, _ = _build_service()

        strip = asyncio.run(
            service.get_day_strip(selected_date=pendulum.date(2025, 1, 19), now=NOW)
        )
        statuses = {entry.date.isoformat(): entry for entry in strip}

        assert strip[0].date.isoformat() == "2025-01-18"
        assert statuses["2025-01-18"].status == DayStatus.CLOSED
        assert statuses["2025-01-19"].status == DayStatus.CLOSED
        for day in ["2025-01-20", "2025-01-21", "2025-01-22", "2025-01-23", "2025-01-24"]:
            assert statuses[day].status == DayStatus.OUT_OF_RANGE
            assert statuses[day].is_disabled
            assert statuses[day].reason == "More than 60 days ahead"

        with pytest.raises(InputError, match="more than 60 days ahead"):
            _day(service, pendulum.date(2025, 1, 20))

    def test_last_day_of_horizon_is_still_open(self):
        service, _, appointment_source = _build_service()

        strip = asyncio.run(
            service.get_day_strip(selected_date=pendulum.date(2025, 1, 14), now=NOW)
        )
        statuses = {entry.date.isoformat(): entry.status for entry in strip}

        assert statuses["2025-01-13"] == DayStatus.OPEN
        assert statuses["2025-01-16"] == DayStatus.OPEN
        assert statuses["2025-01-19"] == DayStatus.CLOSED

        assert appointment_source.calls == []

    def test_strip_starts_one_day_before_selection(self):
        blocked = [BlockedDate(date=TUESDAY, reason="Capacitación")]
        service, _, _ = _build_service(blocked=blocked)

        strip = asyncio.run(service.get_day_strip(selected_date=MONDAY, now=NOW))
        statuses = {entry.date.isoformat(): entry for entry in strip}

        assert strip[0].date.isoformat() == "2024-11-24"
        assert len(strip) == 7
        assert statuses["2024-11-24"].status == DayStatus.CLOSED
        assert statuses["2024-11-24"].is_disabled
        assert statuses["2024-11-25"].status == DayStatus.OPEN
        assert statuses["2024-11-26"].status == DayStatus.BLOCKED
        assert statuses["2024-11-26"].reason == "Capacitación"
        assert statuses["2024-11-29"].status == DayStatus.MISCONFIGURED
        assert not statuses["2024-11-29"].is_disabled


class TestCheckSlot:
    """Tests for the pre-booking re-check."""

    def test_offered_slot_is_available(self):
        service, _, _ = _build_service()

        assert asyncio.run(
            service.check_slot(start=at("09:45"), service_duration_minutes=30, now=NOW)
        )

    def test_taken_slot_is_not_available(self):
        service, _, _ = _build_service()

        assert not asyncio.run(
            service.check_slot(start=at("09:30"), service_duration_minutes=30, now=NOW)
        )

    def test_same_instant_in_utc(self):
        service, _, _ = _build_service()
        start = pendulum.datetime(2024, 11, 25, 8, 45, tz="UTC")  # 09:45 in Berlin

        assert asyncio.run(
            service.check_slot(start=start, service_duration_minutes=30, now=NOW)
        )

    def test_earlier_time_today_is_not_available(self):
        service, _, _ = _build_service()
        now = at("10:00")

        assert not asyncio.run(
            service.check_slot(start=at("09:45"), service_duration_minutes=30, now=now)
        )

    def test_slot_on_an_earlier_date_raises(self):
        service, _, _ = _build_service()
        now = at("10:00")

        with pytest.raises(InputError, match="is in the past"):
            asyncio.run(
                service.check_slot(
                    start=at("15:00", day="2024-11-24"),
                    service_duration_minutes=30,
                    now=now,
                )
            )
