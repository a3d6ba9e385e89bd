"""
Configuration management using Pydantic models loaded from YAML.

Besides runtime defaults the configuration carries seed data (services,
staff, declared availability) used to populate the in-memory stores.
"""

import uuid
from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .adapters.available_slots import AvailableSlotProjection
from .adapters.memory_store import (
    InMemoryAppointmentStore,
    InMemoryAvailabilityStore,
    InMemoryEventPublisher,
    InMemoryServiceCatalog,
    InMemoryStaffCapabilities,
)
from .domain.models import ServiceInfo, StaffDailyAvailability, TimeSlot
from .services.appointments import AppointmentService
from .services.booking import BookingService

SEED_NAMESPACE = uuid.UUID("6f1d7f0e-3c55-4b8e-9a55-1f0c2d7b9e21")


def seed_id(kind: str, name: str) -> uuid.UUID:
    """Derive a stable id for a seeded entity from its name."""
    return uuid.uuid5(SEED_NAMESPACE, f"{kind}:{name.lower()}")


class BookingDefaults(BaseModel):
    """Default settings for alternative-slot suggestions."""
    max_alternatives: int = 5
    days_to_search: int = 7

    @field_validator("max_alternatives", "days_to_search")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure limits are positive."""
        if value <= 0:
            raise ValueError(f"Value must be greater than zero, got {value}")
        return value


class AvailabilityWindow(BaseModel):
    """A declared working window, written as ``"HH:MM-HH:MM"`` in YAML."""
    start: time
    end: time

    @model_validator(mode="before")
    @classmethod
    def parse_range(cls, value):
        if isinstance(value, str):
            start, sep, end = value.partition("-")
            if not sep:
                raise ValueError(f"Availability window must look like 'HH:MM-HH:MM', got {value!r}")
            return {"start": start.strip(), "end": end.strip()}
        return value

    @model_validator(mode="after")
    def validate_order(self) -> "AvailabilityWindow":
        """Ensure the window opens before it closes."""
        if self.end <= self.start:
            raise ValueError(f"Window end {self.end} must be later than start {self.start}")
        return self

    def to_time_slot(self) -> TimeSlot:
        return TimeSlot(start=self.start, end=self.end)


class ServiceConfig(BaseModel):
    """Seeded service."""
    name: str
    duration_minutes: int
    id: Optional[uuid.UUID] = None
    description: Optional[str] = None
    price: Optional[Decimal] = None

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure service duration is positive."""
        if value <= 0:
            raise ValueError("duration_minutes must be greater than zero")
        return value

    @property
    def resolved_id(self) -> uuid.UUID:
        return self.id or seed_id("service", self.name)

    def to_service_info(self) -> ServiceInfo:
        return ServiceInfo(
            id=self.resolved_id,
            name=self.name,
            duration_minutes=self.duration_minutes,
            description=self.description,
            price=self.price,
        )


class StaffConfig(BaseModel):
    """Seeded staff member with capabilities and declared availability."""
    name: str
    id: Optional[uuid.UUID] = None
    services: List[str] = Field(default_factory=list)  # service names
    availability: Dict[date, List[AvailabilityWindow]] = Field(default_factory=dict)

    @field_validator("availability")
    @classmethod
    def validate_no_overlap(
        cls, value: Dict[date, List[AvailabilityWindow]]
    ) -> Dict[date, List[AvailabilityWindow]]:
        """Ensure the windows of one day do not overlap."""
        for day, windows in value.items():
            ordered = sorted(windows, key=lambda w: w.start)
            for earlier, later in zip(ordered, ordered[1:]):
                if later.start < earlier.end:
                    raise ValueError(
                        f"Availability on {day}: window {later.start:%H:%M}-{later.end:%H:%M} "
                        f"overlaps {earlier.start:%H:%M}-{earlier.end:%H:%M}"
                    )
        return value

    @property
    def resolved_id(self) -> uuid.UUID:
        return self.id or seed_id("staff", self.name)


class AppConfig(BaseModel):
    """Application configuration."""
    business_id: uuid.UUID = Field(default_factory=lambda: seed_id("business", "default"))
    timezone: str = "UTC"
    booking: BookingDefaults = Field(default_factory=BookingDefaults)
    services: List[ServiceConfig] = Field(default_factory=list)
    staff: List[StaffConfig] = Field(default_factory=list)

    @field_validator("services")
    @classmethod
    def validate_services(cls, value: List[ServiceConfig]) -> List[ServiceConfig]:
        """Ensure service names are unique."""
        seen: set[str] = set()
        for service in value:
            key = service.name.lower()
            if key in seen:
                raise ValueError(f"Duplicate service name detected: {service.name}")
            seen.add(key)
        return value

    @field_validator("staff")
    @classmethod
    def validate_staff(cls, value: List[StaffConfig]) -> List[StaffConfig]:
        """Ensure staff names are unique."""
        seen: set[str] = set()
        for member in value:
            key = member.name.lower()
            if key in seen:
                raise ValueError(f"Duplicate staff name detected: {member.name}")
            seen.add(key)
        return value

    @model_validator(mode="after")
    def validate_references(self) -> "AppConfig":
        """Ensure every staff capability names a configured service."""
        known = {service.name.lower() for service in self.services}
        for member in self.staff:
            unknown = [name for name in member.services if name.lower() not in known]
            if unknown:
                raise ValueError(f"Staff {member.name} references unknown service(s): {', '.join(unknown)}")
        return self

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    def find_staff_by_name(self, name: str) -> StaffConfig | None:
        """Find a staff member by name (case-insensitive)."""
        for member in self.staff:
            if member.name.lower() == name.lower():
                return member
        return None

    def find_service_by_name(self, name: str) -> ServiceConfig | None:
        """Find a service by name (case-insensitive)."""
        for service in self.services:
            if service.name.lower() == name.lower():
                return service
        return None

    def build_context(self) -> "BookingContext":
        """Create populated in-memory stores and the services wired to them."""
        catalog = InMemoryServiceCatalog(service.to_service_info() for service in self.services)
        capabilities = InMemoryStaffCapabilities()
        availability_store = InMemoryAvailabilityStore()
        projection = AvailableSlotProjection()

        for member in self.staff:
            staff_id = member.resolved_id
            services = [self.find_service_by_name(name) for name in member.services]
            for service in services:
                capabilities.grant(staff_id, service.resolved_id)

            for day, windows in member.availability.items():
                availability = StaffDailyAvailability(
                    staff_id=staff_id,
                    business_id=self.business_id,
                    date=day,
                    slots=frozenset(window.to_time_slot() for window in windows),
                )
                availability_store.save(availability)
                projection.rebuild_for(availability, [service.to_service_info() for service in services])

        appointments = InMemoryAppointmentStore()
        publisher = InMemoryEventPublisher()

        return BookingContext(
            config=self,
            services=catalog,
            capabilities=capabilities,
            availability=availability_store,
            appointments=appointments,
            projection=projection,
            publisher=publisher,
            booking=BookingService(
                capability_lookup=capabilities,
                service_lookup=catalog,
                availability_store=availability_store,
                appointment_store=appointments,
                event_publisher=publisher,
                scheduled_sinks=[projection],
            ),
            lifecycle=AppointmentService(appointments, event_publisher=publisher),
        )


@dataclass
class BookingContext:
    """Everything a front-end needs to serve booking requests."""
    config: AppConfig
    services: InMemoryServiceCatalog
    capabilities: InMemoryStaffCapabilities
    availability: InMemoryAvailabilityStore
    appointments: InMemoryAppointmentStore
    projection: AvailableSlotProjection
    publisher: InMemoryEventPublisher
    booking: BookingService
    lifecycle: AppointmentService


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of staffbooking/)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
