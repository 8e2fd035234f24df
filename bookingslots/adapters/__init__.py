"""
Adapters layer - File-backed data sources for configuration and appointments.
"""

from .config_source import ShopConfigSource
from .json_appointments import JsonAppointmentSource

__all__ = ["JsonAppointmentSource", "ShopConfigSource"]
