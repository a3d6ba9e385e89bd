"""
Application service for the appointment lifecycle after booking.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Callable, Iterable, List, Optional, Protocol, Tuple

from ..domain.appointment import UPCOMING_STATUSES, Appointment, AppointmentStatus
from ..domain.events import DomainEvent
from ..domain.exceptions import AppointmentNotFound
from .booking import EventPublisher, publish_events

logger = logging.getLogger(__name__)

Transition = Callable[[Appointment], Tuple[Appointment, List[DomainEvent]]]


class AppointmentRepository(Protocol):
    """Store operations needed beyond the booking write path."""

    def get(self, appointment_id: uuid.UUID) -> Optional[Appointment]:
        ...

    def update(
        self,
        appointment: Appointment,
        expected_status: Optional[AppointmentStatus] = None,
    ) -> Appointment:
        ...

    def find_by_client(
        self,
        client_id: uuid.UUID,
        statuses: Optional[Iterable[AppointmentStatus]] = None,
    ) -> List[Appointment]:
        ...

    def find_by_client_between(
        self,
        client_id: uuid.UUID,
        start_date: date,
        end_date: date,
    ) -> List[Appointment]:
        ...

    def find_by_staff_and_date(self, staff_id: uuid.UUID, on_date: date) -> List[Appointment]:
        ...


def _chronological(appointments: Iterable[Appointment]) -> List[Appointment]:
    return sorted(appointments, key=lambda a: (a.date, a.start_time))


class AppointmentService:
    """
    Drives confirmation, completion, cancellation and no-show marking.

    Each transition loads the appointment, applies the state-machine edge,
    stores the new state and then publishes the raised events best-effort.
    The write is conditional on the status that was loaded, so of two racing
    transitions only one is stored; the other raises
    ``InvalidAppointmentTransition`` and publishes nothing.
    """

    def __init__(
        self,
        store: AppointmentRepository,
        event_publisher: Optional[EventPublisher] = None,
    ) -> None:
        self._store = store
        self._event_publisher = event_publisher

    def confirm(self, appointment_id: uuid.UUID) -> Appointment:
        return self._apply(appointment_id, lambda a: a.confirm())

    def complete(self, appointment_id: uuid.UUID) -> Appointment:
        return self._apply(appointment_id, lambda a: a.complete())

    def cancel(self, appointment_id: uuid.UUID, reason: Optional[str] = None) -> Appointment:
        return self._apply(appointment_id, lambda a: a.cancel(reason))

    def mark_no_show(self, appointment_id: uuid.UUID) -> Appointment:
        return self._apply(appointment_id, lambda a: a.mark_no_show())

    def get(self, appointment_id: uuid.UUID) -> Appointment:
        appointment = self._store.get(appointment_id)
        if appointment is None:
            raise AppointmentNotFound(f"Appointment {appointment_id} not found")
        return appointment

    def client_appointments(self, client_id: uuid.UUID) -> List[Appointment]:
        return _chronological(self._store.find_by_client(client_id))

    def upcoming_for_client(self, client_id: uuid.UUID) -> List[Appointment]:
        """Scheduled or confirmed appointments of a client, earliest first."""
        return _chronological(self._store.find_by_client(client_id, statuses=UPCOMING_STATUSES))

    def client_appointments_between(
        self,
        client_id: uuid.UUID,
        start_date: date,
        end_date: date,
    ) -> List[Appointment]:
        if end_date < start_date:
            raise ValueError(f"End date {end_date} is before start date {start_date}")
        return _chronological(self._store.find_by_client_between(client_id, start_date, end_date))

    def staff_schedule(self, staff_id: uuid.UUID, on_date: date) -> List[Appointment]:
        """Active appointments of a staff member on one day, earliest first."""
        return _chronological(
            a for a in self._store.find_by_staff_and_date(staff_id, on_date) if a.is_active
        )

    def _apply(self, appointment_id: uuid.UUID, transition: Transition) -> Appointment:
        current = self.get(appointment_id)
        updated, events = transition(current)
        # A concurrent transition that got there first makes this one invalid.
        stored = self._store.update(updated, expected_status=current.status)

        logger.info(
            "Appointment %s moved from %s to %s",
            appointment_id,
            current.status.value,
            stored.status.value,
        )

        publish_events(self._event_publisher, events)
        return stored
