"""
In-memory implementations of the booking collaborators.

These adapters back the CLI and the tests. ``InMemoryAppointmentStore`` is
a complete authoritative store: it serializes all writes per staff member
and refuses overlapping active appointments inside that critical section.
"""

import logging
import threading
import uuid
from collections import defaultdict
from datetime import date, time
from typing import Callable, DefaultDict, Dict, Iterable, List, Optional, Set, Tuple

from ..domain.appointment import Appointment, AppointmentStatus
from ..domain.events import DomainEvent
from ..domain.exceptions import (
    AppointmentNotFound,
    AppointmentOverlapError,
    InvalidAppointmentTransition,
    StoreError,
)
from ..domain.models import ServiceInfo, StaffDailyAvailability, TimeSlot

logger = logging.getLogger(__name__)


class InMemoryServiceCatalog:
    """Service lookup backed by a dictionary."""

    def __init__(self, services: Iterable[ServiceInfo] = ()):
        self._services: Dict[uuid.UUID, ServiceInfo] = {s.id: s for s in services}

    def add(self, service: ServiceInfo) -> None:
        self._services[service.id] = service

    def get_by_id(self, service_id: uuid.UUID) -> Optional[ServiceInfo]:
        return self._services.get(service_id)

    def all(self) -> List[ServiceInfo]:
        return sorted(self._services.values(), key=lambda s: s.name)


class InMemoryStaffCapabilities:
    """Staff-capability lookup backed by a staff id -> service ids mapping."""

    def __init__(self):
        self._services_by_staff: DefaultDict[uuid.UUID, Set[uuid.UUID]] = defaultdict(set)

    def grant(self, staff_id: uuid.UUID, service_id: uuid.UUID) -> None:
        self._services_by_staff[staff_id].add(service_id)

    def revoke(self, staff_id: uuid.UUID, service_id: uuid.UUID) -> None:
        self._services_by_staff[staff_id].discard(service_id)

    def can_perform(self, staff_id: uuid.UUID, service_id: uuid.UUID) -> bool:
        return service_id in self._services_by_staff.get(staff_id, set())

    def services_for_staff(self, staff_id: uuid.UUID) -> List[uuid.UUID]:
        return list(self._services_by_staff.get(staff_id, set()))


class InMemoryAvailabilityStore:
    """
    Availability store keeping one aggregate per staff member, business and date.

    ``find_by_staff_and_business`` returns ``None`` only when the staff
    member has no availability at all for the business. A business the
    staff member works for but without windows on ``on_date`` yields an
    empty aggregate, which the booking workflow reports as not available.
    """

    def __init__(self):
        self._availability: Dict[Tuple[uuid.UUID, uuid.UUID], Dict[date, StaffDailyAvailability]] = {}

    def save(self, availability: StaffDailyAvailability) -> StaffDailyAvailability:
        key = (availability.staff_id, availability.business_id)
        self._availability.setdefault(key, {})[availability.date] = availability
        return availability

    def find_by_staff_and_business(
        self,
        staff_id: uuid.UUID,
        business_id: uuid.UUID,
        on_date: date,
    ) -> Optional[StaffDailyAvailability]:
        days = self._availability.get((staff_id, business_id))
        if days is None:
            return None

        found = days.get(on_date)
        if found is None:
            return StaffDailyAvailability(staff_id=staff_id, business_id=business_id, date=on_date)
        return found

    def find_for_staff(self, staff_id: uuid.UUID, business_id: uuid.UUID) -> List[StaffDailyAvailability]:
        """All declared days of a staff member at a business, ordered by date."""
        days = self._availability.get((staff_id, business_id), {})
        return [days[d] for d in sorted(days)]


class InMemoryAppointmentStore:
    """
    Appointment store with a single-writer-per-staff serialization point.

    Every operation touching one staff member's appointments runs under that
    staff member's lock, so the overlap check and the insert in ``save``
    form one atomic step. Staff members never share a lock.
    """

    def __init__(self):
        self._registry_lock = threading.Lock()
        self._staff_locks: Dict[uuid.UUID, threading.Lock] = {}
        self._by_staff: DefaultDict[uuid.UUID, Dict[uuid.UUID, Appointment]] = defaultdict(dict)
        self._by_id: Dict[uuid.UUID, Appointment] = {}

    def _lock_for(self, staff_id: uuid.UUID) -> threading.Lock:
        with self._registry_lock:
            return self._staff_locks.setdefault(staff_id, threading.Lock())

    def find_overlapping(
        self,
        staff_id: uuid.UUID,
        on_date: date,
        start: time,
        end: time,
    ) -> List[Appointment]:
        window = TimeSlot(start=start, end=end)
        with self._lock_for(staff_id):
            return self._overlapping_locked(staff_id, on_date, window)

    def save(self, appointment: Appointment) -> Appointment:
        """
        Insert a new appointment.

        Raises:
            AppointmentOverlapError: If an active appointment of the same
                staff member overlaps the new one
            StoreError: If the appointment id is already stored
        """
        with self._lock_for(appointment.staff_id):
            if appointment.id in self._by_staff[appointment.staff_id]:
                raise StoreError(f"Appointment {appointment.id} is already stored")

            if appointment.is_active:
                self._ensure_no_overlap_locked(appointment)

            self._store_locked(appointment)

        return appointment

    def update(
        self,
        appointment: Appointment,
        expected_status: Optional[AppointmentStatus] = None,
    ) -> Appointment:
        """
        Replace the stored state of an existing appointment.

        With ``expected_status`` the write only happens while the stored
        appointment still has that status.

        Raises:
            AppointmentNotFound: If the appointment is not stored
            InvalidAppointmentTransition: If the stored status is no longer
                ``expected_status``
            AppointmentOverlapError: If the active appointment would overlap
                another one
        """
        with self._lock_for(appointment.staff_id):
            stored = self._by_staff[appointment.staff_id].get(appointment.id)
            if stored is None:
                raise AppointmentNotFound(f"Appointment {appointment.id} not found")

            if expected_status is not None and stored.status is not expected_status:
                raise InvalidAppointmentTransition(
                    f"Appointment {appointment.id} is {stored.status.value}, "
                    f"expected {expected_status.value}"
                )

            if appointment.is_active:
                self._ensure_no_overlap_locked(appointment)

            self._store_locked(appointment)

        return appointment

    def get(self, appointment_id: uuid.UUID) -> Optional[Appointment]:
        with self._registry_lock:
            return self._by_id.get(appointment_id)

    def find_by_client(
        self,
        client_id: uuid.UUID,
        statuses: Optional[Iterable[AppointmentStatus]] = None,
    ) -> List[Appointment]:
        wanted = set(statuses) if statuses is not None else None
        return self._select(
            lambda a: a.client_id == client_id and (wanted is None or a.status in wanted)
        )

    def find_by_client_between(
        self,
        client_id: uuid.UUID,
        start_date: date,
        end_date: date,
    ) -> List[Appointment]:
        return self._select(lambda a: a.client_id == client_id and start_date <= a.date <= end_date)

    def find_by_staff_and_date(self, staff_id: uuid.UUID, on_date: date) -> List[Appointment]:
        with self._lock_for(staff_id):
            return [a for a in self._by_staff[staff_id].values() if a.date == on_date]

    def _select(self, predicate: Callable[[Appointment], bool]) -> List[Appointment]:
        with self._registry_lock:
            snapshot = list(self._by_id.values())
        return [a for a in snapshot if predicate(a)]

    def _overlapping_locked(self, staff_id: uuid.UUID, on_date: date, window: TimeSlot) -> List[Appointment]:
        return [
            a for a in self._by_staff[staff_id].values()
            if a.is_active and a.date == on_date and a.time_slot.overlaps(window)
        ]

    def _ensure_no_overlap_locked(self, appointment: Appointment) -> None:
        clashes = [
            a for a in self._overlapping_locked(appointment.staff_id, appointment.date, appointment.time_slot)
            if a.id != appointment.id
        ]
        if clashes:
            logger.debug("Appointment %s clashes with %s", appointment.id, [str(a.id) for a in clashes])
            raise AppointmentOverlapError(
                f"Staff member {appointment.staff_id} is already booked on "
                f"{appointment.date} at {appointment.time_slot}"
            )

    def _store_locked(self, appointment: Appointment) -> None:
        self._by_staff[appointment.staff_id][appointment.id] = appointment
        with self._registry_lock:
            self._by_id[appointment.id] = appointment


class InMemoryEventPublisher:
    """Publisher that records events and forwards them to subscribed handlers."""

    def __init__(self):
        self.events: List[DomainEvent] = []
        self._handlers: List[Callable[[DomainEvent], None]] = []

    def subscribe(self, handler: Callable[[DomainEvent], None]) -> None:
        self._handlers.append(handler)

    def publish(self, event: DomainEvent) -> None:
        self.events.append(event)
        for handler in self._handlers:
            handler(event)
