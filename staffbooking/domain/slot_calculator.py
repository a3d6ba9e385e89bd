"""
Core logic for turning declared availability into bookable slots.

Pure domain logic without any external dependencies (no store access, no I/O).
"""

from typing import Iterable, List

from .exceptions import InvalidTimeSlot
from .models import BookableSlot, ServiceInfo, StaffDailyAvailability, TimeSlot


class SlotCalculator:
    """
    Calculates the bookable start times of a staff member for one day.

    Algorithm:
    1. Walk each declared availability slot in start order
    2. Cut consecutive windows of exactly the service duration
    3. Drop the tail that is shorter than the service duration
    4. Optionally drop windows already taken by existing appointments
    """

    def bookable_slots(
        self,
        availability: StaffDailyAvailability,
        service: ServiceInfo,
        taken: Iterable[TimeSlot] = (),
    ) -> List[BookableSlot]:
        """
        Generate bookable slots for one service.

        Args:
            availability: Declared windows of the staff member for the day
            service: Service whose duration determines the window length
            taken: Windows already occupied by appointments

        Returns:
            BookableSlot objects ordered by start time
        """
        taken_slots = list(taken)
        slots: List[BookableSlot] = []

        for declared in availability.sorted_slots():
            for window in self._windows_in(declared, service.duration_minutes):
                if any(window.overlaps(busy) for busy in taken_slots):
                    continue
                slots.append(
                    BookableSlot(
                        business_id=availability.business_id,
                        staff_id=availability.staff_id,
                        service_id=service.id,
                        date=availability.date,
                        time_slot=window,
                    )
                )

        return slots

    def _windows_in(self, declared: TimeSlot, duration_minutes: int) -> List[TimeSlot]:
        """
        Cut ``declared`` into back-to-back windows of ``duration_minutes``.

        Example:
        Declared: 09:00 - 10:40, duration 30
        Result: [09:00-09:30, 09:30-10:00, 10:00-10:30]
        """
        windows: List[TimeSlot] = []
        current = declared.start

        while True:
            try:
                window = TimeSlot.from_start(current, duration_minutes)
            except InvalidTimeSlot:
                # window would leave the day
                break
            if not declared.contains(window):
                break
            windows.append(window)
            current = window.end

        return windows
