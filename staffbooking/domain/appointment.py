"""
Appointment aggregate and its lifecycle state machine.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, time
from enum import Enum
from typing import Dict, FrozenSet, List, Tuple

import pendulum
from pendulum import DateTime

from .events import (
    AppointmentCancelled,
    AppointmentCompleted,
    AppointmentConfirmed,
    AppointmentNoShow,
    AppointmentScheduled,
    DomainEvent,
)
from .exceptions import InvalidAppointmentTransition
from .models import TimeSlot


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self]


ALLOWED_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset({
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.CONFIRMED: frozenset({
        AppointmentStatus.COMPLETED,
        AppointmentStatus.NO_SHOW,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}

ACTIVE_STATUSES = frozenset(status for status in AppointmentStatus if status is not AppointmentStatus.CANCELLED)
UPCOMING_STATUSES = frozenset({AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED})


@dataclass(frozen=True)
class Appointment:
    """
    A booked interval for one staff member, service and client.

    Instances are immutable: every lifecycle operation returns the new state
    together with the events it raised, e.g.::

        confirmed, events = appointment.confirm()
    """
    id: uuid.UUID
    business_id: uuid.UUID
    client_id: uuid.UUID
    staff_id: uuid.UUID
    service_id: uuid.UUID
    date: date
    start_time: time
    end_time: time
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    notes: str | None = None
    created_at: DateTime = field(default_factory=lambda: pendulum.now("UTC"))
    updated_at: DateTime = field(default_factory=lambda: pendulum.now("UTC"))

    def __post_init__(self):
        # validates start < end
        TimeSlot(start=self.start_time, end=self.end_time)

    @classmethod
    def create(
        cls,
        *,
        business_id: uuid.UUID,
        client_id: uuid.UUID,
        staff_id: uuid.UUID,
        service_id: uuid.UUID,
        date: date,
        time_slot: TimeSlot,
        notes: str | None = None,
    ) -> Tuple["Appointment", List[DomainEvent]]:
        """Create a new appointment in ``SCHEDULED`` state with a fresh id."""
        now = pendulum.now("UTC")
        appointment = cls(
            id=uuid.uuid4(),
            business_id=business_id,
            client_id=client_id,
            staff_id=staff_id,
            service_id=service_id,
            date=date,
            start_time=time_slot.start,
            end_time=time_slot.end,
            status=AppointmentStatus.SCHEDULED,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        event = AppointmentScheduled(
            appointment_id=appointment.id,
            business_id=business_id,
            staff_id=staff_id,
            client_id=client_id,
            service_id=service_id,
            date=date,
            start_time=time_slot.start,
            end_time=time_slot.end,
            occurred_at=now,
        )
        return appointment, [event]

    @property
    def time_slot(self) -> TimeSlot:
        return TimeSlot(start=self.start_time, end=self.end_time)

    @property
    def is_active(self) -> bool:
        """Whether the appointment still blocks its window (anything but cancelled)."""
        return self.status in ACTIVE_STATUSES

    def overlaps(self, other: "Appointment") -> bool:
        """Check whether both appointments block the same staff member at the same time."""
        if self.staff_id != other.staff_id or self.date != other.date:
            return False
        if not (self.is_active and other.is_active):
            return False
        return self.time_slot.overlaps(other.time_slot)

    def confirm(self) -> Tuple["Appointment", List[DomainEvent]]:
        confirmed = self._transition(AppointmentStatus.CONFIRMED)
        return confirmed, [AppointmentConfirmed(occurred_at=confirmed.updated_at, **confirmed._identity())]

    def complete(self) -> Tuple["Appointment", List[DomainEvent]]:
        completed = self._transition(AppointmentStatus.COMPLETED)
        return completed, [AppointmentCompleted(occurred_at=completed.updated_at, **completed._identity())]

    def cancel(self, reason: str | None = None) -> Tuple["Appointment", List[DomainEvent]]:
        cancelled = self._transition(AppointmentStatus.CANCELLED)
        event = AppointmentCancelled(reason=reason, occurred_at=cancelled.updated_at, **cancelled._identity())
        return cancelled, [event]

    def mark_no_show(self) -> Tuple["Appointment", List[DomainEvent]]:
        missed = self._transition(AppointmentStatus.NO_SHOW)
        return missed, [AppointmentNoShow(occurred_at=missed.updated_at, **missed._identity())]

    def _transition(self, target: AppointmentStatus) -> "Appointment":
        if target not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidAppointmentTransition(
                f"Cannot move appointment {self.id} from {self.status.value} to {target.value}"
            )
        return replace(self, status=target, updated_at=pendulum.now("UTC"))

    def _identity(self) -> Dict[str, uuid.UUID]:
        return {
            "appointment_id": self.id,
            "business_id": self.business_id,
            "staff_id": self.staff_id,
            "client_id": self.client_id,
        }
