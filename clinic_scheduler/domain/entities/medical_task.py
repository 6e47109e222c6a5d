from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class MedicalTask:
    description: str
    estimated_time: int  # minutes
    responsible: str = ""
    status: str = "PENDIENTE"
    id: int | None = None  # None until created remotely


@dataclass(frozen=True)
class DurationState:
    base_duration: int = 0  # sum of task estimated_time, minutes
    duration: int = 0  # base + buffer, rounded up to slot granularity


@dataclass(frozen=True)
class TaskSet:
    template_tasks: tuple[MedicalTask, ...] = field(default_factory=tuple)
    custom_tasks: tuple[MedicalTask, ...] = field(default_factory=tuple)
    duration_state: DurationState = DurationState()

    @property
    def all_tasks(self) -> tuple[MedicalTask, ...]:
        return self.template_tasks + self.custom_tasks
