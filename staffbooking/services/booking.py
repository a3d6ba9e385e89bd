"""
Application service for booking appointments.

The service coordinates the capability, service, availability and
appointment collaborators and enforces the booking rules end to end. The
collaborators are described as protocols so in-memory adapters and test
stubs can be plugged in without inheritance.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import date, time
from typing import List, Optional, Protocol, Sequence

from ..domain.appointment import Appointment
from ..domain.events import DomainEvent
from ..domain.exceptions import (
    AppointmentOverlapError,
    AvailabilityNotConfigured,
    BookingCancelled,
    BookingConflict,
    ServiceNotFound,
    StaffCannotPerformService,
    StaffDoubleBooked,
    StaffNotAvailable,
)
from ..domain.models import ServiceInfo, StaffDailyAvailability, TimeSlot

logger = logging.getLogger(__name__)


class StaffCapabilityLookup(Protocol):
    """Answers whether a staff member may perform a service."""

    def can_perform(self, staff_id: uuid.UUID, service_id: uuid.UUID) -> bool:
        ...


class ServiceLookup(Protocol):
    """Resolves service ids to their metadata."""

    def get_by_id(self, service_id: uuid.UUID) -> Optional[ServiceInfo]:
        ...


class StaffAvailabilityStore(Protocol):
    """
    Read access to declared staff availability.

    ``None`` means the staff member has no availability configured for the
    business at all. ``on_date`` selects which day's aggregate is returned.
    """

    def find_by_staff_and_business(
        self,
        staff_id: uuid.UUID,
        business_id: uuid.UUID,
        on_date: date,
    ) -> Optional[StaffDailyAvailability]:
        ...


class AppointmentStore(Protocol):
    """
    Durable appointment storage.

    ``save`` is the authoritative guard of the no-overlap rule: it must
    raise ``AppointmentOverlapError`` instead of storing an appointment that
    overlaps an active appointment of the same staff member.
    """

    def find_overlapping(
        self,
        staff_id: uuid.UUID,
        on_date: date,
        start: time,
        end: time,
    ) -> List[Appointment]:
        ...

    def save(self, appointment: Appointment) -> Appointment:
        ...


class AppointmentScheduledSink(Protocol):
    """Downstream synchronizer notified after an appointment is stored."""

    def on_appointment_scheduled(
        self,
        business_id: uuid.UUID,
        staff_id: uuid.UUID,
        on_date: date,
        start: time,
        end: time,
    ) -> None:
        ...


class EventPublisher(Protocol):
    """Channel domain events are handed to after a successful write."""

    def publish(self, event: DomainEvent) -> None:
        ...


def publish_events(publisher: Optional[EventPublisher], events: Sequence[DomainEvent]) -> None:
    """
    Hand events to the publisher without letting failures escape.

    Publishing happens after the write is committed, so a failing publisher
    must never turn a stored change into an error for the caller.
    """
    if publisher is None:
        return

    for event in events:
        try:
            publisher.publish(event)
        except Exception:
            logger.exception(
                "Publishing %s for appointment %s failed",
                event.event_name,
                event.appointment_id,
            )


class BookingService:
    """
    Orchestrates the booking workflow.

    Steps run strictly in order and the first failing step aborts the
    attempt:
    1. Staff capability check
    2. Service resolution
    3. Window computation from the service duration
    4. Declared availability check
    5. Advisory overlap check
    6. Authoritative write through the appointment store
    7. Best-effort post-commit notification

    The service keeps no state between calls and never retries.
    """

    def __init__(
        self,
        capability_lookup: StaffCapabilityLookup,
        service_lookup: ServiceLookup,
        availability_store: StaffAvailabilityStore,
        appointment_store: AppointmentStore,
        event_publisher: Optional[EventPublisher] = None,
        scheduled_sinks: Sequence[AppointmentScheduledSink] = (),
    ) -> None:
        self._capability_lookup = capability_lookup
        self._service_lookup = service_lookup
        self._availability_store = availability_store
        self._appointment_store = appointment_store
        self._event_publisher = event_publisher
        self._scheduled_sinks = list(scheduled_sinks)

    def book_appointment(
        self,
        *,
        business_id: uuid.UUID,
        client_id: uuid.UUID,
        staff_id: uuid.UUID,
        service_id: uuid.UUID,
        date: date,
        start_time: time,
        notes: Optional[str] = None,
        client_timezone: str = "UTC",
        cancel_token: Optional[threading.Event] = None,
    ) -> Appointment:
        """
        Book an appointment or fail with the first violated rule.

        Args:
            business_id: Business the appointment belongs to
            client_id: Client booking the appointment
            staff_id: Staff member performing the service
            service_id: Service to perform
            date: Calendar date of the appointment
            start_time: Requested start time
            notes: Optional free-text notes
            client_timezone: Timezone of the client, recorded for diagnostics only
            cancel_token: Set by the caller to abandon the attempt before the write

        Returns:
            The stored appointment in ``SCHEDULED`` state

        Raises:
            StaffCannotPerformService, ServiceNotFound, InvalidTimeSlot,
            AvailabilityNotConfigured, StaffNotAvailable, StaffDoubleBooked,
            BookingConflict, BookingCancelled: domain rule violations
            StoreError: infrastructure failures, propagated unchanged
        """
        logger.info(
            "Booking appointment for client %s with staff %s on %s at %s (%s)",
            client_id,
            staff_id,
            date,
            start_time,
            client_timezone,
        )

        if not self._capability_lookup.can_perform(staff_id, service_id):
            logger.info("Staff %s cannot perform service %s", staff_id, service_id)
            raise StaffCannotPerformService(
                f"Staff member {staff_id} cannot perform service {service_id}"
            )

        service = self._service_lookup.get_by_id(service_id)
        if service is None:
            raise ServiceNotFound(f"Service {service_id} not found")

        time_slot = TimeSlot.from_start(start_time, service.duration_minutes)

        availability = self._availability_store.find_by_staff_and_business(staff_id, business_id, date)
        if availability is None:
            logger.warning("No availability configured for staff %s at business %s", staff_id, business_id)
            raise AvailabilityNotConfigured(
                f"Staff member {staff_id} has no availability configured for business {business_id}"
            )

        if not availability.is_available(date, time_slot):
            raise StaffNotAvailable(f"Staff member {staff_id} is not available on {date} at {time_slot}")

        existing = self._appointment_store.find_overlapping(staff_id, date, time_slot.start, time_slot.end)
        if existing:
            logger.info("Staff %s already booked on %s at %s", staff_id, date, time_slot)
            raise StaffDoubleBooked()

        appointment, events = Appointment.create(
            business_id=business_id,
            client_id=client_id,
            staff_id=staff_id,
            service_id=service_id,
            date=date,
            time_slot=time_slot,
            notes=notes,
        )

        if cancel_token is not None and cancel_token.is_set():
            logger.info("Booking for client %s cancelled before persistence", client_id)
            raise BookingCancelled("Booking attempt was cancelled before it was stored")

        try:
            saved = self._appointment_store.save(appointment)
        except AppointmentOverlapError as exc:
            logger.warning("Store rejected overlapping appointment for staff %s on %s at %s", staff_id, date, time_slot)
            raise BookingConflict() from exc

        logger.info("Booked appointment %s", saved.id)

        publish_events(self._event_publisher, events)
        self._notify_scheduled(saved)

        return saved

    def _notify_scheduled(self, appointment: Appointment) -> None:
        for sink in self._scheduled_sinks:
            try:
                sink.on_appointment_scheduled(
                    appointment.business_id,
                    appointment.staff_id,
                    appointment.date,
                    appointment.start_time,
                    appointment.end_time,
                )
            except Exception:
                logger.exception("Scheduled-slot sink failed for appointment %s", appointment.id)
