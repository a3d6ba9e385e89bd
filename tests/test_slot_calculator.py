"""
Tests for slot calculator.
"""

import uuid
from datetime import date, time

from staffbooking.domain.models import ServiceInfo, StaffDailyAvailability, TimeSlot
from staffbooking.domain.slot_calculator import SlotCalculator


def slot(start: str, end: str) -> TimeSlot:
    return TimeSlot(start=time.fromisoformat(start), end=time.fromisoformat(end))


def availability(*slots: TimeSlot) -> StaffDailyAvailability:
    return StaffDailyAvailability(
        staff_id=uuid.uuid4(),
        business_id=uuid.uuid4(),
        date=date(2024, 11, 25),
        slots=slots,
    )


HAIRCUT = ServiceInfo(id=uuid.uuid4(), name="Haircut", duration_minutes=30)


class TestSlotCalculator:
    """Tests for SlotCalculator."""

    def test_back_to_back_windows(self):
        """Windows are cut at service-duration steps."""
        slots = SlotCalculator().bookable_slots(availability(slot("09:00", "10:30")), HAIRCUT)

        assert [bs.time_slot for bs in slots] == [
            slot("09:00", "09:30"),
            slot("09:30", "10:00"),
            slot("10:00", "10:30"),
        ]
        assert all(bs.service_id == HAIRCUT.id for bs in slots)

    def test_short_tail_dropped(self):
        """A remainder shorter than the service is not bookable."""
        slots = SlotCalculator().bookable_slots(availability(slot("09:00", "10:40")), HAIRCUT)

        assert slots[-1].time_slot == slot("10:00", "10:30")
        assert len(slots) == 3

    def test_declared_slot_shorter_than_service(self):
        """Nothing fits into a window shorter than the service."""
        assert SlotCalculator().bookable_slots(availability(slot("09:00", "09:20")), HAIRCUT) == []

    def test_multiple_declared_slots_in_order(self):
        """Declared slots are walked in start order."""
        slots = SlotCalculator().bookable_slots(
            availability(slot("13:00", "13:30"), slot("09:00", "09:30")),
            HAIRCUT,
        )

        assert [bs.start for bs in slots] == [time(9, 0), time(13, 0)]

    def test_taken_windows_skipped(self):
        """Windows overlapping existing appointments are left out."""
        slots = SlotCalculator().bookable_slots(
            availability(slot("09:00", "11:00")),
            HAIRCUT,
            taken=[slot("09:15", "09:45")],
        )

        assert [bs.start for bs in slots] == [time(10, 0), time(10, 30)]

    def test_window_ending_at_midnight_is_not_offered(self):
        """Slots never roll over into the next day."""
        slots = SlotCalculator().bookable_slots(availability(slot("23:00", "23:59")), HAIRCUT)

        assert [bs.time_slot for bs in slots] == [slot("23:00", "23:30")]
