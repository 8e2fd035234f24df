"""
Domain layer - Pure business logic without external dependencies.
"""

from .candidates import CandidateGenerator
from .engine import AvailabilityEngine
from .exceptions import BookingSlotsError, ConfigError, InputError
from .models import (
    Appointment,
    AppointmentStatus,
    BlockedDate,
    DayAvailability,
    DayOverview,
    DaySlots,
    DayStatus,
    TimeRange,
    WeeklyHourRule,
    resolve_week,
)
from .partitioner import SlotPartitioner
from .validator import SlotValidator

__all__ = [
    "Appointment",
    "AppointmentStatus",
    "AvailabilityEngine",
    "BlockedDate",
    "BookingSlotsError",
    "CandidateGenerator",
    "ConfigError",
    "DayAvailability",
    "DayOverview",
    "DaySlots",
    "DayStatus",
    "InputError",
    "SlotPartitioner",
    "SlotValidator",
    "TimeRange",
    "WeeklyHourRule",
    "resolve_week",
]
