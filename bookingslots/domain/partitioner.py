"""
Groups validated slots into morning and afternoon buckets.
"""

from typing import Iterable

from pendulum import DateTime

from .models import DaySlots

NOON_HOUR = 12


class SlotPartitioner:
    """Splits slots by their local hour of day."""

    def __init__(self, timezone: str, noon_hour: int = NOON_HOUR):
        self.timezone = timezone
        self.noon_hour = noon_hour

    def partition(self, slots: Iterable[DateTime]) -> DaySlots:
        morning = []
        afternoon = []

        for slot in slots:
            if slot.in_timezone(self.timezone).hour < self.noon_hour:
                morning.append(slot)
            else:
                afternoon.append(slot)

        return DaySlots(morning=tuple(morning), afternoon=tuple(afternoon))
