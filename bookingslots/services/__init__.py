"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import (
    AppointmentSourceProtocol,
    AvailabilityService,
    ConfigSourceProtocol,
)

__all__ = ["AppointmentSourceProtocol", "AvailabilityService", "ConfigSourceProtocol"]
