from __future__ import annotations


class PlanningError(Exception):
    """Base class for failures reported by the planning core."""


class ValidationError(PlanningError, ValueError):
    """Malformed step, part, project or resource. Aborts the whole schedule."""


class NotFoundError(PlanningError, LookupError):
    """A task id that is not present in the schedule."""

    def __init__(self, task_id: str):
        super().__init__(f"unknown task_id: {task_id!r}")
        self.task_id = task_id


class ScheduleCancelled(PlanningError):
    """Caller asked to stop an in-progress schedule. No partial result exists."""
