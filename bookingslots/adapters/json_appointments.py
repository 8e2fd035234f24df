"""
Appointment source that reads bookings from a JSON file.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import pendulum
from pendulum import DateTime

from ..domain.models import Appointment, AppointmentStatus

logger = logging.getLogger(__name__)


class JsonAppointmentSource:
    """
    Loads appointments from a JSON export.

    The file holds a list of objects shaped like the appointments table:

        [{"start_time": "2024-11-25T09:00:00-05:00",
          "end_time": "2024-11-25T09:45:00-05:00",
          "status": "confirmed"}]

    Timestamps without an offset are read in the shop timezone. Invalid
    records are skipped with a warning.
    """

    def __init__(self, path: Path | None, timezone: str = "UTC"):
        """
        Initialize the source.

        Args:
            path: JSON file to read; None or a missing file means no appointments
            timezone: IANA timezone used for timestamps without an offset
        """
        self.path = path
        self.timezone = timezone
        self.appointments = self._load_appointments()

    def _load_appointments(self) -> List[Appointment]:
        """Load and parse all appointments from the JSON file."""
        if self.path is None or not self.path.exists():
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                records = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in {self.path}: {exc}") from exc

        if not isinstance(records, list):
            raise ValueError(f"{self.path} must contain a list of appointments.")

        appointments: List[Appointment] = []

        for index, record in enumerate(records):
            try:
                appointments.append(self._parse_record(record))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping appointment #%d in %s: %s", index, self.path, exc)

        return appointments

    def _parse_record(self, record: Dict[str, Any]) -> Appointment:
        return Appointment(
            start_time=pendulum.parse(record["start_time"], tz=self.timezone),
            end_time=pendulum.parse(record["end_time"], tz=self.timezone),
            status=AppointmentStatus(record.get("status", AppointmentStatus.CONFIRMED.value)),
        )

    async def get_appointments(
        self,
        start_time: DateTime,
        end_time: DateTime
    ) -> List[Appointment]:
        """
        Return all appointments overlapping ``[start_time, end_time)``.
        """
        return [
            appointment
            for appointment in self.appointments
            if appointment.start_time < end_time and appointment.end_time > start_time
        ]
