"""
Tests for morning/afternoon partitioning.
"""

import pendulum

from bookingslots.domain.partitioner import SlotPartitioner

TZ = "Europe/Berlin"


def at(clock: str) -> pendulum.DateTime:
    return pendulum.parse(f"2024-11-25 {clock}", tz=TZ)


class TestSlotPartitioner:
    """Tests for SlotPartitioner."""

    def test_noon_boundary(self):
        """11:59 is still morning, 12:00 is afternoon."""
        partitioner = SlotPartitioner(timezone=TZ)

        slots = partitioner.partition([at("11:59"), at("12:00")])

        assert slots.morning == (at("11:59"),)
        assert slots.afternoon == (at("12:00"),)

    def test_order_preserved_within_buckets(self):
        partitioner = SlotPartitioner(timezone=TZ)
        ordered = [at("09:00"), at("09:45"), at("11:30"), at("14:00"), at("17:30")]

        slots = partitioner.partition(ordered)

        assert slots.morning == (at("09:00"), at("09:45"), at("11:30"))
        assert slots.afternoon == (at("14:00"), at("17:30"))
        assert slots.all() == ordered

    def test_empty_input(self):
        partitioner = SlotPartitioner(timezone=TZ)

        slots = partitioner.partition([])

        assert slots.morning == ()
        assert slots.afternoon == ()
        assert slots.is_empty

    def test_uses_shop_local_hour(self):
        """Instants given in UTC are bucketed by the shop's wall clock."""
        partitioner = SlotPartitioner(timezone=TZ)
        late_morning = pendulum.datetime(2024, 11, 25, 10, 30, tz="UTC")  # 11:30 in Berlin
        early_afternoon = pendulum.datetime(2024, 11, 25, 11, 30, tz="UTC")  # 12:30 in Berlin

        slots = partitioner.partition([late_morning, early_afternoon])

        assert slots.morning == (late_morning,)
        assert slots.afternoon == (early_afternoon,)
