"""
Domain events raised by appointment operations.

Events are returned alongside the new aggregate state instead of being
collected on the aggregate; publishing them is the caller's job.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, time
from typing import ClassVar

import pendulum
from pendulum import DateTime


def _utc_now() -> DateTime:
    return pendulum.now("UTC")


@dataclass(frozen=True)
class DomainEvent:
    appointment_id: uuid.UUID
    business_id: uuid.UUID
    staff_id: uuid.UUID
    client_id: uuid.UUID

    event_name: ClassVar[str] = "domain.event"


@dataclass(frozen=True)
class AppointmentScheduled(DomainEvent):
    """Carries the full booking identity and window of a new appointment."""
    service_id: uuid.UUID
    date: date
    start_time: time
    end_time: time
    occurred_at: DateTime = field(default_factory=_utc_now)

    event_name: ClassVar[str] = "appointment.scheduled"


@dataclass(frozen=True)
class AppointmentConfirmed(DomainEvent):
    occurred_at: DateTime = field(default_factory=_utc_now)

    event_name: ClassVar[str] = "appointment.confirmed"


@dataclass(frozen=True)
class AppointmentCompleted(DomainEvent):
    occurred_at: DateTime = field(default_factory=_utc_now)

    event_name: ClassVar[str] = "appointment.completed"


@dataclass(frozen=True)
class AppointmentCancelled(DomainEvent):
    reason: str | None = None
    occurred_at: DateTime = field(default_factory=_utc_now)

    event_name: ClassVar[str] = "appointment.cancelled"


@dataclass(frozen=True)
class AppointmentNoShow(DomainEvent):
    occurred_at: DateTime = field(default_factory=_utc_now)

    event_name: ClassVar[str] = "appointment.no_show"
