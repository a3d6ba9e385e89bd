"""
Tests for the available-slots read model.
"""

import logging
import uuid
from datetime import date, time

from staffbooking.adapters.available_slots import AvailableSlotProjection
from staffbooking.domain.models import ServiceInfo, StaffDailyAvailability, TimeSlot

BUSINESS_ID = uuid.uuid4()
STAFF_ID = uuid.uuid4()
MONDAY = date(2024, 11, 25)
HAIRCUT = ServiceInfo(id=uuid.uuid4(), name="Haircut", duration_minutes=30)
SHAVE = ServiceInfo(id=uuid.uuid4(), name="Shave", duration_minutes=15)


def _availability(
    on: date,
    start: str,
    end: str,
    staff_id: uuid.UUID = STAFF_ID,
    business_id: uuid.UUID = BUSINESS_ID,
) -> StaffDailyAvailability:
    return StaffDailyAvailability(
        staff_id=staff_id,
        business_id=business_id,
        date=on,
        slots=[TimeSlot(start=time.fromisoformat(start), end=time.fromisoformat(end))],
    )


class TestAvailableSlotProjection:
    """Tests for AvailableSlotProjection."""

    def test_rebuild_lists_slots_per_service(self):
        projection = AvailableSlotProjection()

        count = projection.rebuild_for(_availability(MONDAY, "09:00", "10:00"), [HAIRCUT, SHAVE])

        assert count == 6
        assert [s.start for s in projection.slots_for(BUSINESS_ID, HAIRCUT.id, MONDAY)] == [time(9, 0), time(9, 30)]
        assert len(projection.slots_for(BUSINESS_ID, SHAVE.id, MONDAY)) == 4

    def test_rebuild_replaces_previous_day(self):
        projection = AvailableSlotProjection()
        projection.rebuild_for(_availability(MONDAY, "09:00", "12:00"), [HAIRCUT])

        projection.rebuild_for(_availability(MONDAY, "09:00", "09:30"), [HAIRCUT])

        assert len(projection.slots_for(BUSINESS_ID, HAIRCUT.id, MONDAY)) == 1

    def test_scheduled_appointment_retires_overlapping_slots(self):
        """Every service's slot overlapping the booked window disappears."""
        projection = AvailableSlotProjection()
        projection.rebuild_for(_availability(MONDAY, "09:00", "10:00"), [HAIRCUT, SHAVE])

        projection.on_appointment_scheduled(BUSINESS_ID, STAFF_ID, MONDAY, time(9, 0), time(9, 30))

        assert [s.start for s in projection.slots_for(BUSINESS_ID, HAIRCUT.id, MONDAY)] == [time(9, 30)]
        assert [s.start for s in projection.slots_for(BUSINESS_ID, SHAVE.id, MONDAY)] == [time(9, 30), time(9, 45)]
        assert not projection.is_slot_available(BUSINESS_ID, STAFF_ID, HAIRCUT.id, MONDAY, time(9, 0))
        assert projection.is_slot_available(BUSINESS_ID, STAFF_ID, HAIRCUT.id, MONDAY, time(9, 30))

    def test_scheduled_for_unknown_day_is_harmless(self):
        projection = AvailableSlotProjection()

        projection.on_appointment_scheduled(BUSINESS_ID, STAFF_ID, MONDAY, time(9, 0), time(9, 30))

        assert projection.slots_for(BUSINESS_ID, HAIRCUT.id, MONDAY) == []

    def test_staff_filter(self):
        other_staff = uuid.uuid4()
        projection = AvailableSlotProjection()
        projection.rebuild_for(_availability(MONDAY, "09:00", "09:30"), [HAIRCUT])
        projection.rebuild_for(_availability(MONDAY, "14:00", "14:30", staff_id=other_staff), [HAIRCUT])

        assert len(projection.slots_for(BUSINESS_ID, HAIRCUT.id, MONDAY)) == 2
        only_other = projection.slots_for(BUSINESS_ID, HAIRCUT.id, MONDAY, staff_id=other_staff)
        assert [s.staff_id for s in only_other] == [other_staff]

    def test_alternatives_same_day_by_proximity_then_later_days(self):
        projection = AvailableSlotProjection()
        projection.rebuild_for(_availability(MONDAY, "09:00", "12:00"), [HAIRCUT])
        projection.rebuild_for(_availability(date(2024, 11, 27), "09:00", "10:00"), [HAIRCUT])

        alternatives = projection.find_alternatives(
            BUSINESS_ID,
            HAIRCUT.id,
            preferred_date=MONDAY,
            preferred_time=time(10, 0),
            max_results=3,
        )

        assert [(a.date, a.start) for a in alternatives] == [
            (MONDAY, time(9, 30)),
            (MONDAY, time(10, 30)),
            (MONDAY, time(9, 0)),
        ]

        more = projection.find_alternatives(
            BUSINESS_ID,
            HAIRCUT.id,
            preferred_date=MONDAY,
            preferred_time=time(10, 0),
            max_results=8,
        )

        assert len(more) == 7
        assert [(a.date, a.start) for a in more[-2:]] == [
            (date(2024, 11, 27), time(9, 0)),
            (date(2024, 11, 27), time(9, 30)),
        ]

    def test_alternatives_respect_search_window(self):
        projection = AvailableSlotProjection()
        projection.rebuild_for(_availability(date(2024, 12, 10), "09:00", "10:00"), [HAIRCUT])

        assert projection.find_alternatives(BUSINESS_ID, HAIRCUT.id, MONDAY, time(10, 0), days_to_search=7) == []
        assert projection.find_alternatives(BUSINESS_ID, HAIRCUT.id, MONDAY, time(10, 0), max_results=0) == []

    def test_businesses_keep_separate_slots_for_same_staff(self):
        """A staff member working for two businesses on one day keeps both listings."""
        other_business = uuid.uuid4()
        projection = AvailableSlotProjection()
        projection.rebuild_for(_availability(MONDAY, "09:00", "10:00"), [HAIRCUT])
        projection.rebuild_for(_availability(MONDAY, "14:00", "15:00", business_id=other_business), [HAIRCUT])

        assert [s.start for s in projection.slots_for(BUSINESS_ID, HAIRCUT.id, MONDAY)] == [time(9, 0), time(9, 30)]
        assert [s.start for s in projection.slots_for(other_business, HAIRCUT.id, MONDAY)] == [
            time(14, 0),
            time(14, 30),
        ]

        projection.on_appointment_scheduled(other_business, STAFF_ID, MONDAY, time(14, 0), time(14, 30))

        assert len(projection.slots_for(BUSINESS_ID, HAIRCUT.id, MONDAY)) == 2
        assert [s.start for s in projection.slots_for(other_business, HAIRCUT.id, MONDAY)] == [time(14, 30)]

    def test_retiring_slots_logs_below_info(self, caplog):
        projection = AvailableSlotProjection()
        projection.rebuild_for(_availability(MONDAY, "09:00", "10:00"), [HAIRCUT])

        with caplog.at_level(logging.INFO, logger="staffbooking.adapters.available_slots"):
            projection.on_appointment_scheduled(BUSINESS_ID, STAFF_ID, MONDAY, time(9, 0), time(9, 30))

        assert caplog.records == []
