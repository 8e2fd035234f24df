"""
Filters candidate starts down to the slots that can actually be booked.
"""

import logging
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from pendulum import DateTime

from .models import Appointment, TimeRange

logger = logging.getLogger(__name__)


class Rejection(str, Enum):
    PAST = "starts before now"
    BEFORE_OPENING = "starts before opening"
    AFTER_CLOSING = "ends after closing"
    BREAK = "overlaps the break"
    BOOKED = "overlaps an appointment"


class SlotValidator:
    """
    Checks every candidate against business hours, the break, the current
    time and the confirmed appointments of the day.

    All overlap checks are half-open: a slot may end exactly when the break
    or an appointment starts, and start exactly when it ends.
    """

    def validate(
        self,
        candidates: Iterable[DateTime],
        *,
        opening: TimeRange,
        duration_minutes: int,
        now: DateTime,
        appointments: Sequence[Appointment] = (),
        break_window: Optional[TimeRange] = None
    ) -> List[DateTime]:
        """
        Return the candidates that pass every check, in their original order.
        """
        booked = [
            appointment.time_range
            for appointment in appointments
            if appointment.is_confirmed
        ]

        valid: List[DateTime] = []

        for start in candidates:
            reason = self.rejection(
                start,
                opening=opening,
                duration_minutes=duration_minutes,
                now=now,
                booked=booked,
                break_window=break_window,
            )
            if reason is None:
                valid.append(start)
            else:
                logger.debug("Rejected %s: %s", start, reason.value)

        return valid

    def rejection(
        self,
        start: DateTime,
        *,
        opening: TimeRange,
        duration_minutes: int,
        now: DateTime,
        booked: Sequence[TimeRange],
        break_window: Optional[TimeRange] = None
    ) -> Rejection | None:
        """
        Get the first reason a slot starting at ``start`` cannot be booked.

        Returns None when the slot is bookable.
        """
        if start < now:
            return Rejection.PAST

        if start < opening.start:
            return Rejection.BEFORE_OPENING

        slot = TimeRange(start=start, end=start.add(minutes=duration_minutes))

        if slot.end > opening.end:
            return Rejection.AFTER_CLOSING

        if break_window is not None and slot.overlaps(break_window):
            return Rejection.BREAK

        if any(slot.overlaps(busy) for busy in booked):
            return Rejection.BOOKED

        return None
