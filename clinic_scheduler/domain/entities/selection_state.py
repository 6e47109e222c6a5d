from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from clinic_scheduler.domain.entities.availability import AvailabilityWindow, TimeSlot
from clinic_scheduler.domain.entities.clinic import Doctor, Office


# Dependency order of the user selections. A field may only be set once every
# field before it is set.
SELECTION_ORDER = ("doctor_filter", "doctor", "date", "time_slot", "office_id")


@dataclass(frozen=True)
class DoctorFilter:
    """First selection stage: doctors either by speciality or by name."""

    speciality_id: int | None = None
    name_term: str | None = None


@dataclass(frozen=True)
class SelectionState:
    doctor_filter: DoctorFilter | None = None
    doctor: Doctor | None = None
    date: date | None = None
    time_slot: TimeSlot | None = None
    office_id: int | None = None
    # candidate lists derived from the selections above
    available_doctors: tuple[Doctor, ...] = field(default_factory=tuple)
    availability_windows: tuple[AvailabilityWindow, ...] = field(default_factory=tuple)
    time_slots: tuple[TimeSlot, ...] = field(default_factory=tuple)
    available_offices: tuple[Office, ...] = field(default_factory=tuple)

    @property
    def speciality_id(self) -> int | None:
        return self.doctor_filter.speciality_id if self.doctor_filter else None

    @property
    def is_complete(self) -> bool:
        return all(getattr(self, name) is not None for name in SELECTION_ORDER)
