"""
Domain-specific exception hierarchy for the booking slots engine.
"""


class BookingSlotsError(Exception):
    """Base class for all application-level errors."""


class ConfigError(BookingSlotsError):
    """Raised when a business-hours rule cannot be turned into a valid day."""


class InputError(BookingSlotsError):
    """Raised when a request is rejected before any computation starts."""
