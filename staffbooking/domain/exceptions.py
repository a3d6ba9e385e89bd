"""
Domain-specific exception hierarchy for the booking core.

Domain validation failures derive from ``BookingError`` and are always
surfaced to the caller. Infrastructure failures derive from ``StoreError``
and are never retried inside the booking workflow.
"""


class StaffBookingError(Exception):
    """Base class for all application-level errors."""


class BookingError(StaffBookingError):
    """Raised when a booking request violates a domain rule."""


class InvalidTimeSlot(BookingError):
    """Raised when a time window is malformed (start not before end, day overflow)."""


class OverlappingTimeSlots(BookingError):
    """Raised when declared availability windows would overlap each other."""


class StaffCannotPerformService(BookingError):
    """Raised when the staff member is not allowed to perform the service."""


class ServiceNotFound(BookingError):
    """Raised when the requested service does not exist."""


class AvailabilityNotConfigured(BookingError):
    """Raised when the staff member has no declared availability for the business."""


class StaffNotAvailable(BookingError):
    """Raised when the requested window is not covered by declared availability."""


class SlotUnavailable(BookingError):
    """Base for conflicts that surface to the caller as "slot no longer available"."""

    def __init__(self, message: str = "This time slot is no longer available"):
        super().__init__(message)


class StaffDoubleBooked(SlotUnavailable):
    """Raised when the advisory overlap check finds an existing appointment."""


class BookingConflict(SlotUnavailable):
    """Raised when the appointment store rejects the write as overlapping."""


class BookingCancelled(BookingError):
    """Raised when the caller cancelled the attempt before it was persisted."""


class AppointmentNotFound(BookingError):
    """Raised when an appointment id does not resolve to a stored appointment."""


class InvalidAppointmentTransition(BookingError):
    """Raised when a lifecycle transition is not allowed from the current status."""


class StoreError(StaffBookingError):
    """Raised when a backing store cannot complete a read or write."""


class AppointmentOverlapError(StoreError):
    """Raised by an appointment store when a write would double-book a staff member."""
