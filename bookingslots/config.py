"""
Configuration management using Pydantic models loaded from YAML.
"""

import datetime
from datetime import date
from pathlib import Path
from typing import List, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator

from .domain.candidates import DEFAULT_STEP_MINUTES
from .domain.engine import DEFAULT_MAX_DAYS_IN_ADVANCE, AvailabilityEngine
from .domain.models import DEFAULT_CLOSE, DEFAULT_OPEN, BlockedDate, WeeklyHourRule


class BookingConfig(BaseModel):
    """Booking-flow settings."""
    max_days_in_advance: Optional[int] = DEFAULT_MAX_DAYS_IN_ADVANCE
    slot_step_minutes: int = DEFAULT_STEP_MINUTES
    default_duration_minutes: int = 30

    @field_validator("slot_step_minutes", "default_duration_minutes")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure minute values are positive."""
        if value <= 0:
            raise ValueError(f"Value must be greater than zero, got {value}")
        return value

    @field_validator("max_days_in_advance")
    @classmethod
    def validate_horizon(cls, value: Optional[int]) -> Optional[int]:
        """Allow no horizon, otherwise require a non-negative day count."""
        if value is not None and value < 0:
            raise ValueError(f"max_days_in_advance must not be negative, got {value}")
        return value


class BusinessHourConfig(BaseModel):
    """
    Opening hours of one weekday.

    Times stay plain strings here; a malformed value only disables its own
    weekday when slots are computed.
    """
    day_of_week: int  # 0=Sunday, 6=Saturday
    start_time: str = DEFAULT_OPEN
    end_time: str = DEFAULT_CLOSE
    break_start: Optional[str] = None
    break_end: Optional[str] = None
    is_active: bool = True

    @field_validator("day_of_week")
    @classmethod
    def validate_day(cls, value: int) -> int:
        """Validate weekday is between 0 and 6."""
        if value not in range(7):
            raise ValueError(f"day_of_week must be between 0 and 6, got {value}")
        return value

    @field_validator("start_time", "end_time", "break_start", "break_end", mode="before")
    @classmethod
    def restore_sexagesimal_time(cls, value):
        """
        Undo YAML 1.1 base-60 integers: unquoted ``19:00`` loads as 1140.

        Anything else is left for the time parser to judge per weekday.
        """
        if isinstance(value, bool) or not isinstance(value, int):
            return value
        if 0 <= value < 24 * 60:
            return f"{value // 60:02d}:{value % 60:02d}"
        return str(value)

    def to_rule(self) -> WeeklyHourRule:
        return WeeklyHourRule(
            day_of_week=self.day_of_week,
            start_time=self.start_time,
            end_time=self.end_time,
            break_start=self.break_start,
            break_end=self.break_end,
            is_active=self.is_active,
        )


class BlockedDateConfig(BaseModel):
    """A closed calendar date."""
    date: datetime.date
    reason: Optional[str] = None

    def to_blocked_date(self) -> BlockedDate:
        return BlockedDate(date=self.date, reason=self.reason)


class ShopConfig(BaseModel):
    """Application configuration."""
    name: str = ""
    timezone: str = "UTC"
    booking: BookingConfig = Field(default_factory=BookingConfig)
    business_hours: List[BusinessHourConfig] = Field(default_factory=list)
    blocked_dates: List[BlockedDateConfig] = Field(default_factory=list)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA name."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("business_hours")
    @classmethod
    def validate_business_hours(cls, value: List[BusinessHourConfig]) -> List[BusinessHourConfig]:
        """Ensure each weekday is configured at most once."""
        seen: set[int] = set()
        for hours in value:
            if hours.day_of_week in seen:
                raise ValueError(f"Duplicate business hours for day_of_week={hours.day_of_week}")
            seen.add(hours.day_of_week)
        return value

    @field_validator("blocked_dates")
    @classmethod
    def validate_blocked_dates(cls, value: List[BlockedDateConfig]) -> List[BlockedDateConfig]:
        """Ensure each blocked date is listed once."""
        seen: set[date] = set()
        for blocked in value:
            if blocked.date in seen:
                raise ValueError(f"Duplicate blocked date detected: {blocked.date}")
            seen.add(blocked.date)
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "ShopConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            ShopConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    def get_weekly_rules(self) -> List[WeeklyHourRule]:
        return [hours.to_rule() for hours in self.business_hours]

    def get_blocked_dates(self) -> List[BlockedDate]:
        return [blocked.to_blocked_date() for blocked in self.blocked_dates]

    def build_engine(self) -> AvailabilityEngine:
        """Create an engine using this shop's timezone and booking settings."""
        return AvailabilityEngine(
            timezone=self.timezone,
            slot_step_minutes=self.booking.slot_step_minutes,
            max_days_in_advance=self.booking.max_days_in_advance,
        )


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
