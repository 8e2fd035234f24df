"""
Configuration-backed source of business hours and blocked dates.
"""

from typing import List

from ..config import ShopConfig
from ..domain.models import BlockedDate, WeeklyHourRule


class ShopConfigSource:
    """
    Serves weekly rules and blocked dates from a loaded ``ShopConfig``.

    Matches ``ConfigSourceProtocol`` so a database-backed source can replace
    it without touching the service.
    """

    def __init__(self, config: ShopConfig):
        self.config = config

    async def get_weekly_hours(self) -> List[WeeklyHourRule]:
        return self.config.get_weekly_rules()

    async def get_blocked_dates(self) -> List[BlockedDate]:
        return self.config.get_blocked_dates()
