"""
Domain models for time slots, staff availability and service metadata.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, time
from decimal import Decimal
from typing import FrozenSet, Iterable, List

import pendulum

from .exceptions import InvalidTimeSlot, OverlappingTimeSlots


@dataclass(frozen=True)
class TimeSlot:
    """
    Represents an immutable time-of-day interval ``[start, end)``.

    Invariant: start must be before end.
    """
    start: time
    end: time

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidTimeSlot(f"Start time {self.start} must be before end time {self.end}")

    @classmethod
    def from_start(cls, start: time, duration_minutes: int) -> "TimeSlot":
        """
        Build a slot of the given length beginning at ``start``.

        Windows that would roll over midnight are rejected, including an end
        of exactly 24:00.

        Raises:
            InvalidTimeSlot: If the duration is not positive or the window
                leaves the day
        """
        if duration_minutes <= 0:
            raise InvalidTimeSlot(f"Duration must be positive, got {duration_minutes} minutes")

        anchor = pendulum.datetime(2000, 1, 1, start.hour, start.minute, start.second, start.microsecond)
        finish = anchor.add(minutes=duration_minutes)

        if finish.date() != anchor.date():
            raise InvalidTimeSlot(
                f"A {duration_minutes} minute window starting at {start:%H:%M} runs past midnight"
            )

        return cls(start=start, end=time(finish.hour, finish.minute, finish.second, finish.microsecond))

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        start_seconds = self.start.hour * 3600 + self.start.minute * 60 + self.start.second
        end_seconds = self.end.hour * 3600 + self.end.minute * 60 + self.end.second
        return (end_seconds - start_seconds) // 60

    def overlaps(self, other: "TimeSlot") -> bool:
        """Check if this slot overlaps with another (touching boundaries do not)."""
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeSlot") -> bool:
        """Check if ``other`` lies entirely within this slot."""
        return self.start <= other.start and other.end <= self.end

    def split_by(self, inner: "TimeSlot") -> List["TimeSlot"]:
        """
        Return what remains of this slot once ``inner`` is taken out of it.

        Example:
        Slot: 09:00 - 12:00
        Inner: 10:00 - 10:30
        Result: [09:00-10:00, 10:30-12:00]
        """
        if not self.contains(inner):
            raise InvalidTimeSlot(f"{inner} is not contained in {self}")

        remainder: List[TimeSlot] = []
        if self.start < inner.start:
            remainder.append(TimeSlot(start=self.start, end=inner.start))
        if inner.end < self.end:
            remainder.append(TimeSlot(start=inner.end, end=self.end))
        return remainder

    def __str__(self) -> str:
        return f"{self.start:%H:%M}-{self.end:%H:%M}"


@dataclass(frozen=True)
class StaffDailyAvailability:
    """
    Declared working windows of one staff member for one calendar date.

    Read-only from the booking workflow's perspective. The schedule helpers
    return new instances instead of mutating this one.
    """
    staff_id: uuid.UUID
    business_id: uuid.UUID
    date: date
    slots: FrozenSet[TimeSlot] = frozenset()
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self):
        object.__setattr__(self, "slots", frozenset(self.slots))
        ordered = self.sorted_slots()
        for previous, current in zip(ordered, ordered[1:]):
            if previous.overlaps(current):
                raise OverlappingTimeSlots(f"Time slot {current} overlaps with {previous}")

    def is_available(self, on_date: date, requested: TimeSlot) -> bool:
        """
        Check whether ``requested`` is fully covered on ``on_date``.

        Returns False (never raises) when the date differs or no declared
        slot contains the requested window.
        """
        if on_date != self.date:
            return False
        return any(slot.contains(requested) for slot in self.slots)

    def sorted_slots(self) -> List[TimeSlot]:
        """Return declared slots ordered by start time."""
        return sorted(self.slots, key=lambda s: s.start)

    def with_slot(self, slot: TimeSlot) -> "StaffDailyAvailability":
        """Return a copy with ``slot`` added; overlapping slots are rejected."""
        if any(existing.overlaps(slot) for existing in self.slots):
            raise OverlappingTimeSlots(f"New time slot {slot} overlaps with existing slots")
        return replace(self, slots=self.slots | {slot})

    def without_slot(self, slot: TimeSlot) -> "StaffDailyAvailability":
        """Return a copy without ``slot``; unknown slots are ignored."""
        return replace(self, slots=self.slots - {slot})

    def replace_slots(self, slots: Iterable[TimeSlot]) -> "StaffDailyAvailability":
        """Return a copy declaring exactly ``slots``."""
        return replace(self, slots=frozenset(slots))


@dataclass(frozen=True)
class ServiceInfo:
    """Read-only service metadata resolved by the service lookup."""
    id: uuid.UUID
    name: str
    duration_minutes: int
    description: str | None = None
    price: Decimal | None = None

    def __post_init__(self):
        if self.duration_minutes <= 0:
            raise InvalidTimeSlot(
                f"Service {self.name!r} must have a positive duration, got {self.duration_minutes}"
            )


@dataclass(frozen=True)
class BookableSlot:
    """
    A concrete start/end a client may book for one staff member and service.

    Entries of the denormalized "available slots" read model.
    """
    business_id: uuid.UUID
    staff_id: uuid.UUID
    service_id: uuid.UUID
    date: date
    time_slot: TimeSlot

    @property
    def start(self) -> time:
        return self.time_slot.start

    @property
    def end(self) -> time:
        return self.time_slot.end

    def format_display(self) -> str:
        """Format the slot for display, e.g. ``Mon, 25.11.2024 | 10:00 - 10:30``."""
        day = pendulum.date(self.date.year, self.date.month, self.date.day)
        return f"{day.format('ddd, DD.MM.YYYY')} | {self.start:%H:%M} - {self.end:%H:%M}"
