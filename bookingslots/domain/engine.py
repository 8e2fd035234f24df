"""
Appointment availability engine.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O). The current
time is always passed in, so identical inputs give identical results.

Algorithm:
1. Reject invalid requests (duration, booking horizon)
2. Return nothing for blocked dates and closed weekdays
3. Apply the weekly rule to the date (opening hours, break)
4. Generate candidate starts (grid + back-to-back packing)
5. Keep the candidates that violate no constraint
6. Split them into morning and afternoon

The result is advisory: it states what was free when it was computed.
Whoever inserts the booking has to enforce no-overlap atomically in the
data store, since two clients can pick the same slot concurrently.
"""

import logging
from datetime import date
from typing import Optional, Sequence

from pendulum import DateTime

from .candidates import DEFAULT_STEP_MINUTES, CandidateGenerator
from .exceptions import ConfigError, InputError
from .models import (
    Appointment,
    DayAvailability,
    DaySlots,
    DayStatus,
    WeeklyHourRule,
    confirmed_only,
)
from .partitioner import SlotPartitioner
from .validator import SlotValidator

logger = logging.getLogger(__name__)

DEFAULT_MAX_DAYS_IN_ADVANCE = 60


class AvailabilityEngine:
    """
    Computes the bookable slot starts of one day.
    """

    def __init__(
        self,
        timezone: str,
        slot_step_minutes: int = DEFAULT_STEP_MINUTES,
        max_days_in_advance: Optional[int] = DEFAULT_MAX_DAYS_IN_ADVANCE
    ):
        """
        Args:
            timezone: IANA timezone of the shop; rules are local wall-clock times
            slot_step_minutes: Spacing of the regular candidate grid
            max_days_in_advance: Booking horizon in days, None for no limit
        """
        self.timezone = timezone
        self.max_days_in_advance = max_days_in_advance
        self.generator = CandidateGenerator(step_minutes=slot_step_minutes)
        self.validator = SlotValidator()
        self.partitioner = SlotPartitioner(timezone=timezone)

    def compute_slots(
        self,
        *,
        target_date: date,
        service_duration_minutes: int,
        rule: WeeklyHourRule,
        is_blocked: bool,
        appointments: Sequence[Appointment],
        now: DateTime
    ) -> DaySlots:
        """
        Find all slot starts on ``target_date`` that fit the service.

        Args:
            target_date: Day to compute slots for
            service_duration_minutes: Length of the requested service
            rule: Weekly rule for the weekday of ``target_date``
            is_blocked: Whether ``target_date`` is a blocked date
            appointments: Appointments on ``target_date``
            now: Current instant

        Returns:
            DaySlots, possibly empty

        Raises:
            InputError: If the duration or date is not acceptable
            ConfigError: If the rule cannot be applied to the date
        """
        self.check_request(
            target_date=target_date,
            service_duration_minutes=service_duration_minutes,
            now=now,
        )

        if is_blocked or not rule.is_active:
            return DaySlots()

        opening = rule.opening_hours(target_date, self.timezone)
        break_window = rule.break_window(target_date, self.timezone)
        booked = confirmed_only(appointments)

        candidates = self.generator.generate(opening, booked)
        valid = self.validator.validate(
            candidates,
            opening=opening,
            duration_minutes=service_duration_minutes,
            now=now,
            appointments=booked,
            break_window=break_window,
        )

        logger.debug(
            "%s: %d of %d candidates bookable for %d minutes",
            target_date, len(valid), len(candidates), service_duration_minutes
        )

        return self.partitioner.partition(valid)

    def evaluate_day(
        self,
        *,
        target_date: date,
        service_duration_minutes: int,
        rule: WeeklyHourRule,
        is_blocked: bool,
        appointments: Sequence[Appointment],
        now: DateTime,
        blocked_reason: Optional[str] = None
    ) -> DayAvailability:
        """
        Like ``compute_slots`` but classifies the day.

        A broken rule makes the day MISCONFIGURED with no slots instead of
        raising, so one bad weekday never takes down the whole request.

        Raises:
            InputError: If the duration or date is not acceptable
        """
        try:
            slots = self.compute_slots(
                target_date=target_date,
                service_duration_minutes=service_duration_minutes,
                rule=rule,
                is_blocked=is_blocked,
                appointments=appointments,
                now=now,
            )
        except ConfigError as exc:
            logger.warning("Business hours for %s are invalid: %s", target_date, exc)
            return DayAvailability(
                date=target_date,
                status=DayStatus.MISCONFIGURED,
                reason=str(exc),
            )

        if is_blocked:
            status = DayStatus.BLOCKED
        elif not rule.is_active:
            status = DayStatus.CLOSED
        elif slots.is_empty:
            status = DayStatus.FULL
        else:
            status = DayStatus.OPEN

        return DayAvailability(
            date=target_date,
            status=status,
            slots=slots,
            reason=blocked_reason if is_blocked else None,
        )

    def check_request(
        self,
        *,
        target_date: date,
        service_duration_minutes: int,
        now: DateTime
    ) -> None:
        """
        Validate request parameters before any computation.

        Raises:
            InputError: If the duration is not a positive integer or the date
                lies in the past or beyond the booking horizon
        """
        if (
            isinstance(service_duration_minutes, bool)
            or not isinstance(service_duration_minutes, int)
            or service_duration_minutes <= 0
        ):
            raise InputError(
                f"Service duration must be a positive number of minutes, "
                f"got {service_duration_minutes!r}"
            )

        days_ahead = self.days_ahead(target_date, now)

        if days_ahead < 0:
            raise InputError(f"{target_date} is in the past")

        if not self.within_horizon(target_date, now):
            raise InputError(
                f"{target_date} is more than {self.max_days_in_advance} days ahead"
            )

    def within_horizon(self, target_date: date, now: DateTime) -> bool:
        """Whether ``target_date`` is no further ahead than the booking horizon."""
        if self.max_days_in_advance is None:
            return True
        return self.days_ahead(target_date, now) <= self.max_days_in_advance

    def days_ahead(self, target_date: date, now: DateTime) -> int:
        """Calendar days between the shop's local today and ``target_date``."""
        today = now.in_timezone(self.timezone).date()
        return target_date.toordinal() - today.toordinal()
