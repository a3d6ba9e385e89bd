"""
Service layer that orchestrates collaborators and domain logic.
"""

from .appointments import AppointmentRepository, AppointmentService
from .booking import (
    AppointmentScheduledSink,
    AppointmentStore,
    BookingService,
    EventPublisher,
    ServiceLookup,
    StaffAvailabilityStore,
    StaffCapabilityLookup,
)

__all__ = [
    "AppointmentRepository",
    "AppointmentScheduledSink",
    "AppointmentService",
    "AppointmentStore",
    "BookingService",
    "EventPublisher",
    "ServiceLookup",
    "StaffAvailabilityStore",
    "StaffCapabilityLookup",
]
