"""
Adapters layer - In-memory stores and the available-slots read model.
"""

from .available_slots import AvailableSlotProjection
from .memory_store import (
    InMemoryAppointmentStore,
    InMemoryAvailabilityStore,
    InMemoryEventPublisher,
    InMemoryServiceCatalog,
    InMemoryStaffCapabilities,
)

__all__ = [
    "AvailableSlotProjection",
    "InMemoryAppointmentStore",
    "InMemoryAvailabilityStore",
    "InMemoryEventPublisher",
    "InMemoryServiceCatalog",
    "InMemoryStaffCapabilities",
]
