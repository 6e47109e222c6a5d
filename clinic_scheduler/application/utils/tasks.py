from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from clinic_scheduler.application.utils.duration_policy import DEFAULT_BUFFER_MINUTES, compute_duration_state
from clinic_scheduler.domain.entities.medical_task import MedicalTask, TaskSet


def _recompute(task_set: TaskSet, buffer_minutes: int) -> TaskSet:
    return replace(task_set, duration_state=compute_duration_state(task_set.all_tasks, buffer_minutes))


def empty_task_set(buffer_minutes: int = DEFAULT_BUFFER_MINUTES) -> TaskSet:
    return _recompute(TaskSet(), buffer_minutes)


def replace_template_tasks(
    task_set: TaskSet,
    template_tasks: Iterable[MedicalTask],
    buffer_minutes: int = DEFAULT_BUFFER_MINUTES,
) -> TaskSet:
    """Swap in the template tasks of a new appointment type; custom tasks stay."""
    return _recompute(replace(task_set, template_tasks=tuple(template_tasks)), buffer_minutes)


def add_task(
    task_set: TaskSet,
    task: MedicalTask,
    buffer_minutes: int = DEFAULT_BUFFER_MINUTES,
) -> TaskSet:
    _validate(task)
    return _recompute(replace(task_set, custom_tasks=task_set.custom_tasks + (task,)), buffer_minutes)


def update_task(
    task_set: TaskSet,
    index: int,
    task: MedicalTask,
    buffer_minutes: int = DEFAULT_BUFFER_MINUTES,
) -> TaskSet:
    _check_index(task_set, index)
    _validate(task)
    custom = list(task_set.custom_tasks)
    custom[index] = task
    return _recompute(replace(task_set, custom_tasks=tuple(custom)), buffer_minutes)


def remove_task(
    task_set: TaskSet,
    *,
    index: int | None = None,
    task_id: int | None = None,
    buffer_minutes: int = DEFAULT_BUFFER_MINUTES,
) -> TaskSet:
    """Remove a custom task by position, or every custom task carrying ``task_id``."""
    if (index is None) == (task_id is None):
        raise ValueError("Pass exactly one of index or task_id.")

    if index is not None:
        _check_index(task_set, index)
        custom = task_set.custom_tasks[:index] + task_set.custom_tasks[index + 1 :]
    else:
        custom = tuple(t for t in task_set.custom_tasks if t.id != task_id)
        if len(custom) == len(task_set.custom_tasks):
            raise ValueError(f"No custom task with id {task_id}.")

    return _recompute(replace(task_set, custom_tasks=custom), buffer_minutes)


def _check_index(task_set: TaskSet, index: int) -> None:
    if not 0 <= index < len(task_set.custom_tasks):
        raise IndexError(f"Custom task index {index} out of range ({len(task_set.custom_tasks)} tasks).")


def _validate(task: MedicalTask) -> None:
    if not task.description.strip():
        raise ValueError("Task description is required.")
    if task.estimated_time < 0:
        raise ValueError(f"Estimated time must be >= 0, got {task.estimated_time}.")
