"""
Domain layer - Pure business logic without external dependencies.
"""

from .appointment import Appointment, AppointmentStatus
from .models import BookableSlot, ServiceInfo, StaffDailyAvailability, TimeSlot
from .slot_calculator import SlotCalculator

__all__ = [
    "Appointment",
    "AppointmentStatus",
    "BookableSlot",
    "ServiceInfo",
    "SlotCalculator",
    "StaffDailyAvailability",
    "TimeSlot",
]
