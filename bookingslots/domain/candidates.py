"""
Candidate slot starts for a single business day.

Two independent generators feed the list:

* the regular grid, stepping through the opening hours at a fixed interval
  so that an empty day is offered evenly spaced times, and
* back-to-back packing, which offers the end of every existing appointment
  as a start so new bookings can abut existing ones even when they end off
  the grid.

Without the second generator a 09:00-09:45 booking would leave 09:45-10:00
unusable on a 30 minute grid.
"""

import logging
from typing import Iterable, List

from pendulum import DateTime

from .models import Appointment, TimeRange

logger = logging.getLogger(__name__)

DEFAULT_STEP_MINUTES = 30


class CandidateGenerator:
    """
    Produces sorted, de-duplicated candidate start instants.
    """

    def __init__(self, step_minutes: int = DEFAULT_STEP_MINUTES):
        if step_minutes <= 0:
            raise ValueError(f"step_minutes must be positive, got {step_minutes}")
        self.step_minutes = step_minutes

    def generate(
        self,
        opening: TimeRange,
        appointments: Iterable[Appointment]
    ) -> List[DateTime]:
        """
        Merge grid and packing candidates.

        Args:
            opening: Opening hours of the day
            appointments: Existing appointments of the day

        Returns:
            Candidate starts in ascending order, each instant at most once
        """
        grid = self.grid_candidates(opening)
        packing = self.packing_candidates(opening, appointments)

        candidates = self._merge(grid + packing)

        logger.debug(
            "Generated %d candidates (%d grid, %d packing) for %s",
            len(candidates), len(grid), len(packing), opening
        )

        return candidates

    def grid_candidates(self, opening: TimeRange) -> List[DateTime]:
        """
        Step from opening until closing.

        Example (30 minute step):
        Opening: 09:00 - 10:30
        Result: [09:00, 09:30, 10:00]
        """
        candidates: List[DateTime] = []
        current = opening.start

        while current < opening.end:
            candidates.append(current)
            current = current.add(minutes=self.step_minutes)

        return candidates

    def packing_candidates(
        self,
        opening: TimeRange,
        appointments: Iterable[Appointment]
    ) -> List[DateTime]:
        """
        Offer the end of each confirmed appointment that ends by closing time.
        """
        return [
            appointment.end_time
            for appointment in appointments
            if appointment.is_confirmed and appointment.end_time <= opening.end
        ]

    @staticmethod
    def _merge(candidates: List[DateTime]) -> List[DateTime]:
        """Sort by instant and collapse exact duplicates."""
        merged: List[DateTime] = []

        for candidate in sorted(candidates):
            if merged and merged[-1] == candidate:
                continue
            merged.append(candidate)

        return merged
