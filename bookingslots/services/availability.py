"""
Application services for answering availability queries.

The service coordinates fetching shop configuration and appointments via
source adapters and delegates the actual slot computation to the
domain-level ``AvailabilityEngine``. This keeps the CLI thin and improves
testability by allowing both data dependencies to be mocked via simple
protocols.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, timedelta
from typing import Dict, List, Protocol

import pendulum
from pendulum import DateTime

from ..domain.engine import AvailabilityEngine
from ..domain.exceptions import ConfigError
from ..domain.models import (
    Appointment,
    BlockedDate,
    DayAvailability,
    DayOverview,
    DayStatus,
    WeeklyHourRule,
    confirmed_only,
    day_of_week,
    resolve_week,
)

logger = logging.getLogger(__name__)

DAY_STRIP_LENGTH = 7


class ConfigSourceProtocol(Protocol):
    """Protocol describing where business hours and blocked dates come from."""

    async def get_weekly_hours(self) -> List[WeeklyHourRule]:
        """Return the configured weekly rules (missing weekdays are closed)."""

    async def get_blocked_dates(self) -> List[BlockedDate]:
        """Return all blocked dates."""


class AppointmentSourceProtocol(Protocol):
    """Protocol describing the appointment store behaviour needed by the service."""

    async def get_appointments(
        self,
        start_time: DateTime,
        end_time: DateTime,
    ) -> List[Appointment]:
        """Return appointments overlapping ``[start_time, end_time)``."""


class AvailabilityService:
    """
    Orchestrates data retrieval and slot computation for the booking flow.

    Results are advisory. The booking collaborator must still insert new
    appointments with an atomic overlap check (a database constraint or a
    transaction); ``check_slot`` narrows the race window but cannot close it.
    """

    def __init__(
        self,
        config_source: ConfigSourceProtocol,
        appointment_source: AppointmentSourceProtocol,
        engine: AvailabilityEngine,
    ) -> None:
        self._config_source = config_source
        self._appointment_source = appointment_source
        self._engine = engine

    async def get_day_availability(
        self,
        *,
        target_date: date,
        service_duration_minutes: int,
        now: DateTime,
    ) -> DayAvailability:
        """
        Compute the bookable slots of one day.

        Raises:
            InputError: If the duration or date is rejected
            ConfigError: If the weekly rules themselves are inconsistent
        """
        self._engine.check_request(
            target_date=target_date,
            service_duration_minutes=service_duration_minutes,
            now=now,
        )

        week, blocked = await self._load_config()
        rule = week[day_of_week(target_date)]
        blocked_entry = blocked.get(target_date.isoformat())
        is_blocked = blocked_entry is not None

        appointments: List[Appointment] = []
        if not is_blocked and rule.is_active:
            appointments = await self.fetch_appointments(target_date)

        return self._engine.evaluate_day(
            target_date=target_date,
            service_duration_minutes=service_duration_minutes,
            rule=rule,
            is_blocked=is_blocked,
            appointments=appointments,
            now=now,
            blocked_reason=blocked_entry.reason if blocked_entry else None,
        )

    async def get_day_strip(
        self,
        *,
        selected_date: date,
        now: DateTime,
        days: int = DAY_STRIP_LENGTH,
    ) -> List[DayOverview]:
        """
        Describe the days shown in the day picker.

        The strip starts one day before ``selected_date`` but never before
        today. No appointments are fetched; a day is only marked closed,
        blocked or misconfigured from configuration. Days past the booking
        horizon are OUT_OF_RANGE, matching the InputError that
        ``get_day_availability`` raises for them.
        """
        week, blocked = await self._load_config()

        first = selected_date - timedelta(days=1)
        days_ahead = self._engine.days_ahead(first, now)
        if days_ahead < 0:
            first = first - timedelta(days=days_ahead)

        overview: List[DayOverview] = []

        for offset in range(days):
            day = first + timedelta(days=offset)
            rule = week[day_of_week(day)]
            blocked_entry = blocked.get(day.isoformat())

            if not self._engine.within_horizon(day, now):
                overview.append(DayOverview(
                    day,
                    DayStatus.OUT_OF_RANGE,
                    f"More than {self._engine.max_days_in_advance} days ahead",
                ))
            elif blocked_entry is not None:
                overview.append(DayOverview(day, DayStatus.BLOCKED, blocked_entry.reason))
            elif not rule.is_active:
                overview.append(DayOverview(day, DayStatus.CLOSED))
            else:
                overview.append(self._overview_for_open_day(day, rule))

        return overview

    async def check_slot(
        self,
        *,
        start: DateTime,
        service_duration_minutes: int,
        now: DateTime,
    ) -> bool:
        """
        Re-check a single slot right before it gets booked.

        A start that is no longer offered, including one earlier today,
        gives False.

        Raises:
            InputError: If the duration is invalid or the slot's local date
                lies before today or beyond the booking horizon
        """
        target_date = start.in_timezone(self._engine.timezone).date()

        availability = await self.get_day_availability(
            target_date=target_date,
            service_duration_minutes=service_duration_minutes,
            now=now,
        )

        return start in availability.slots.all()

    async def fetch_appointments(self, target_date: date) -> List[Appointment]:
        """Fetch the confirmed appointments overlapping the local day."""
        day_start = pendulum.datetime(
            target_date.year, target_date.month, target_date.day,
            tz=self._engine.timezone,
        )
        day_end = day_start.add(days=1)

        appointments = await self._appointment_source.get_appointments(
            start_time=day_start,
            end_time=day_end,
        )

        confirmed = confirmed_only(appointments)
        logger.debug(
            "%s: %d appointments fetched, %d confirmed",
            target_date, len(appointments), len(confirmed)
        )
        return confirmed

    async def _load_config(self):
        rules, blocked_dates = await asyncio.gather(
            self._config_source.get_weekly_hours(),
            self._config_source.get_blocked_dates(),
        )

        blocked: Dict[str, BlockedDate] = {
            entry.date.isoformat(): entry for entry in blocked_dates
        }

        return resolve_week(rules), blocked

    def _overview_for_open_day(self, day: date, rule: WeeklyHourRule) -> DayOverview:
        try:
            rule.opening_hours(day, self._engine.timezone)
            rule.break_window(day, self._engine.timezone)
        except ConfigError as exc:
            logger.warning("Business hours for %s are invalid: %s", day, exc)
            return DayOverview(day, DayStatus.MISCONFIGURED, str(exc))

        return DayOverview(day, DayStatus.OPEN)
