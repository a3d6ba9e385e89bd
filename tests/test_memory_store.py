"""
Tests for the in-memory adapters.
"""

import uuid
from datetime import date, time

import pytest

from staffbooking.adapters.memory_store import (
    InMemoryAppointmentStore,
    InMemoryAvailabilityStore,
    InMemoryEventPublisher,
    InMemoryServiceCatalog,
    InMemoryStaffCapabilities,
)
from staffbooking.domain.appointment import Appointment, AppointmentStatus
from staffbooking.domain.exceptions import (
    AppointmentNotFound,
    AppointmentOverlapError,
    InvalidAppointmentTransition,
    StoreError,
)
from staffbooking.domain.models import ServiceInfo, StaffDailyAvailability, TimeSlot

STAFF_ID = uuid.uuid4()
CLIENT_ID = uuid.uuid4()
MONDAY = date(2024, 11, 25)


def make_appointment(start: str, end: str, *, staff_id=STAFF_ID, client_id=CLIENT_ID, on=MONDAY) -> Appointment:
    appointment, _ = Appointment.create(
        business_id=uuid.uuid4(),
        client_id=client_id,
        staff_id=staff_id,
        service_id=uuid.uuid4(),
        date=on,
        time_slot=TimeSlot(start=time.fromisoformat(start), end=time.fromisoformat(end)),
    )
    return appointment


class TestInMemoryAppointmentStore:
    """Tests for the overlap-safe appointment store."""

    def test_save_and_get(self):
        store = InMemoryAppointmentStore()
        appointment = make_appointment("10:00", "10:30")

        assert store.save(appointment) is appointment
        assert store.get(appointment.id) == appointment
        assert store.get(uuid.uuid4()) is None

    def test_save_rejects_overlap(self):
        """The store is the authority on the no-overlap rule."""
        store = InMemoryAppointmentStore()
        store.save(make_appointment("10:00", "10:30"))

        with pytest.raises(AppointmentOverlapError):
            store.save(make_appointment("10:15", "10:45"))

    def test_overlap_error_is_store_error(self):
        assert issubclass(AppointmentOverlapError, StoreError)

    def test_save_allows_adjacent_other_day_and_other_staff(self):
        store = InMemoryAppointmentStore()
        store.save(make_appointment("10:00", "10:30"))

        store.save(make_appointment("10:30", "11:00"))
        store.save(make_appointment("10:00", "10:30", on=date(2024, 11, 26)))
        store.save(make_appointment("10:00", "10:30", staff_id=uuid.uuid4()))

        assert len(store.find_by_staff_and_date(STAFF_ID, MONDAY)) == 2

    def test_save_rejects_duplicate_id(self):
        store = InMemoryAppointmentStore()
        appointment = make_appointment("10:00", "10:30")
        store.save(appointment)

        with pytest.raises(StoreError, match="already stored"):
            store.save(appointment.cancel()[0])

    def test_find_overlapping_ignores_cancelled(self):
        store = InMemoryAppointmentStore()
        appointment = store.save(make_appointment("10:00", "10:30"))

        assert store.find_overlapping(STAFF_ID, MONDAY, time(10, 15), time(10, 45)) == [appointment]

        store.update(appointment.cancel()[0])

        assert store.find_overlapping(STAFF_ID, MONDAY, time(10, 15), time(10, 45)) == []

    def test_update_unknown_appointment(self):
        with pytest.raises(AppointmentNotFound):
            InMemoryAppointmentStore().update(make_appointment("10:00", "10:30"))

    def test_update_refuses_when_status_moved_on(self):
        """A conditional write fails once another writer changed the status."""
        store = InMemoryAppointmentStore()
        appointment = store.save(make_appointment("10:00", "10:30"))
        store.update(appointment.cancel()[0], expected_status=AppointmentStatus.SCHEDULED)

        with pytest.raises(InvalidAppointmentTransition):
            store.update(appointment.confirm()[0], expected_status=AppointmentStatus.SCHEDULED)

        assert store.get(appointment.id).status is AppointmentStatus.CANCELLED

    def test_update_keeps_overlap_rule(self):
        """Re-activating a window that is taken meanwhile is rejected."""
        store = InMemoryAppointmentStore()
        first = store.save(make_appointment("10:00", "10:30"))
        cancelled = store.update(first.cancel()[0])
        store.save(make_appointment("10:00", "10:30"))

        revived = Appointment(**{**cancelled.__dict__, "status": AppointmentStatus.SCHEDULED})
        with pytest.raises(AppointmentOverlapError):
            store.update(revived)

    def test_client_queries(self):
        store = InMemoryAppointmentStore()
        monday = store.save(make_appointment("10:00", "10:30"))
        tuesday = store.save(make_appointment("10:00", "10:30", on=date(2024, 11, 26)))
        store.save(make_appointment("11:00", "11:30", client_id=uuid.uuid4()))
        store.update(tuesday.confirm()[0])

        assert {a.id for a in store.find_by_client(CLIENT_ID)} == {monday.id, tuesday.id}
        assert [a.id for a in store.find_by_client(CLIENT_ID, statuses=[AppointmentStatus.CONFIRMED])] == [tuesday.id]
        assert [a.id for a in store.find_by_client_between(CLIENT_ID, MONDAY, MONDAY)] == [monday.id]


class TestInMemoryAvailabilityStore:
    """Tests for the availability store."""

    def test_unknown_staff_returns_none(self):
        assert InMemoryAvailabilityStore().find_by_staff_and_business(STAFF_ID, uuid.uuid4(), MONDAY) is None

    def test_returns_day_or_empty_aggregate(self):
        """Configured staff without windows that day get an empty aggregate."""
        business_id = uuid.uuid4()
        store = InMemoryAvailabilityStore()
        declared = store.save(
            StaffDailyAvailability(
                staff_id=STAFF_ID,
                business_id=business_id,
                date=MONDAY,
                slots=[TimeSlot(start=time(9, 0), end=time(17, 0))],
            )
        )

        assert store.find_by_staff_and_business(STAFF_ID, business_id, MONDAY) == declared

        other_day = store.find_by_staff_and_business(STAFF_ID, business_id, date(2024, 11, 26))
        assert other_day is not None
        assert other_day.slots == frozenset()
        assert store.find_for_staff(STAFF_ID, business_id) == [declared]


class TestLookups:
    """Tests for the service catalog, capabilities and publisher."""

    def test_service_catalog(self):
        haircut = ServiceInfo(id=uuid.uuid4(), name="Haircut", duration_minutes=30)
        catalog = InMemoryServiceCatalog([haircut])

        assert catalog.get_by_id(haircut.id) == haircut
        assert catalog.get_by_id(uuid.uuid4()) is None

    def test_capabilities(self):
        service_id = uuid.uuid4()
        capabilities = InMemoryStaffCapabilities()

        assert not capabilities.can_perform(STAFF_ID, service_id)

        capabilities.grant(STAFF_ID, service_id)
        assert capabilities.can_perform(STAFF_ID, service_id)
        assert capabilities.services_for_staff(STAFF_ID) == [service_id]

        capabilities.revoke(STAFF_ID, service_id)
        assert not capabilities.can_perform(STAFF_ID, service_id)

    def test_publisher_forwards_to_handlers(self):
        publisher = InMemoryEventPublisher()
        received = []
        publisher.subscribe(received.append)
        _, events = Appointment.create(
            business_id=uuid.uuid4(),
            client_id=CLIENT_ID,
            staff_id=STAFF_ID,
            service_id=uuid.uuid4(),
            date=MONDAY,
            time_slot=TimeSlot(start=time(10, 0), end=time(10, 30)),
        )

        publisher.publish(events[0])

        assert publisher.events == events
        assert received == events
