"""
Denormalized "available slots" read model.

The projection lists concrete bookable windows per staff member, service
and day so clients can browse times without running the booking rules.
It is a convenience view only: the appointment store stays the authority
on whether a window can actually be booked.
"""

import logging
import threading
import uuid
from datetime import date, time, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from ..domain.models import BookableSlot, ServiceInfo, StaffDailyAvailability, TimeSlot
from ..domain.slot_calculator import SlotCalculator

logger = logging.getLogger(__name__)


def _seconds(value: time) -> int:
    return value.hour * 3600 + value.minute * 60 + value.second


class AvailableSlotProjection:
    """
    In-memory read model of bookable slots.

    Implements the scheduled-appointment sink: once an appointment is
    stored, every slot of that staff member overlapping its window is
    retired.
    """

    def __init__(self, calculator: Optional[SlotCalculator] = None):
        self._calculator = calculator or SlotCalculator()
        self._lock = threading.Lock()
        self._slots: Dict[Tuple[uuid.UUID, uuid.UUID, date], List[BookableSlot]] = {}

    def rebuild_for(
        self,
        availability: StaffDailyAvailability,
        services: Iterable[ServiceInfo],
        taken: Iterable[TimeSlot] = (),
    ) -> int:
        """
        Regenerate the slots of one staff member and day at one business.

        Args:
            availability: Declared windows for the day
            services: Services the staff member can perform
            taken: Windows already occupied by appointments

        Returns:
            Number of bookable slots now listed for the day
        """
        taken_slots = list(taken)
        slots: List[BookableSlot] = []
        for service in services:
            slots.extend(self._calculator.bookable_slots(availability, service, taken_slots))

        slots.sort(key=lambda s: (s.start, str(s.service_id)))

        with self._lock:
            self._slots[(availability.business_id, availability.staff_id, availability.date)] = slots

        logger.debug(
            "Listed %d bookable slots for staff %s on %s",
            len(slots),
            availability.staff_id,
            availability.date,
        )
        return len(slots)

    def on_appointment_scheduled(
        self,
        business_id: uuid.UUID,
        staff_id: uuid.UUID,
        on_date: date,
        start: time,
        end: time,
    ) -> None:
        booked = TimeSlot(start=start, end=end)
        key = (business_id, staff_id, on_date)

        with self._lock:
            current = self._slots.get(key, [])
            remaining = [s for s in current if not s.time_slot.overlaps(booked)]
            self._slots[key] = remaining

        logger.debug(
            "Retired %d slot(s) for staff %s on %s at %s",
            len(current) - len(remaining),
            staff_id,
            on_date,
            booked,
        )

    def slots_for(
        self,
        business_id: uuid.UUID,
        service_id: uuid.UUID,
        on_date: date,
        staff_id: Optional[uuid.UUID] = None,
    ) -> List[BookableSlot]:
        """Bookable slots for a service on one day, ordered by start time."""
        with self._lock:
            candidates = [
                s for (slot_business, slot_staff, slot_date), slots in self._slots.items()
                if slot_business == business_id
                and slot_date == on_date
                and (staff_id is None or slot_staff == staff_id)
                for s in slots
            ]

        return sorted((s for s in candidates if s.service_id == service_id), key=lambda s: s.start)

    def is_slot_available(
        self,
        business_id: uuid.UUID,
        staff_id: uuid.UUID,
        service_id: uuid.UUID,
        on_date: date,
        start: time,
    ) -> bool:
        return any(
            s.start == start
            for s in self.slots_for(business_id, service_id, on_date, staff_id=staff_id)
        )

    def find_alternatives(
        self,
        business_id: uuid.UUID,
        service_id: uuid.UUID,
        preferred_date: date,
        preferred_time: time,
        staff_id: Optional[uuid.UUID] = None,
        max_results: int = 5,
        days_to_search: int = 7,
    ) -> List[BookableSlot]:
        """
        Suggest other slots when the preferred one is gone.

        Same-day slots come first, closest to the preferred time. The rest
        is filled from the following ``days_to_search`` days in date and
        time order.
        """
        if max_results <= 0:
            return []

        preferred_seconds = _seconds(preferred_time)
        same_day = sorted(
            (
                s for s in self.slots_for(business_id, service_id, preferred_date, staff_id=staff_id)
                if s.start != preferred_time
            ),
            key=lambda s: abs(_seconds(s.start) - preferred_seconds),
        )
        alternatives = same_day[:max_results]

        for offset in range(1, days_to_search + 1):
            if len(alternatives) >= max_results:
                break
            day = preferred_date + timedelta(days=offset)
            remaining = max_results - len(alternatives)
            alternatives.extend(self.slots_for(business_id, service_id, day, staff_id=staff_id)[:remaining])

        return alternatives
