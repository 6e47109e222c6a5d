from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Doctor:
    id: int
    name: str
    last_name: str
    speciality_ids: tuple[int, ...] = field(default_factory=tuple)
    medical_license_number: str | None = None
    personal_id: int | None = None  # staff record owning the availability windows

    @property
    def availability_owner_id(self) -> int:
        return self.personal_id if self.personal_id is not None else self.id

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.last_name}".strip()


@dataclass(frozen=True)
class Office:
    id: int
    name: str
    location: str = ""
    status: str = "A"  # "A" active, "I" inactive
