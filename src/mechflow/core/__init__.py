"""Planning core.

Pure, synchronous functions over value snapshots: the capability check, the
greedy scheduler and the completion ledger. Nothing in here logs or does I/O.
"""

from mechflow.core.capability import annotate_part, annotate_projects, available_types, check_capability
from mechflow.core.errors import NotFoundError, PlanningError, ScheduleCancelled, ValidationError
from mechflow.core.ledger import TaskLedger, toggle_result, toggle_task
from mechflow.core.models import (
    OUTSOURCE_PREFIX,
    OUTSOURCE_RESOURCE_ID,
    ManufacturingStep,
    Part,
    ProcessingType,
    Project,
    Resource,
    ScheduleResult,
    ScheduleTask,
    default_resources,
)
from mechflow.core.scheduler import generate_schedule, validate_inputs

__all__ = [
    "OUTSOURCE_PREFIX",
    "OUTSOURCE_RESOURCE_ID",
    "ManufacturingStep",
    "NotFoundError",
    "Part",
    "PlanningError",
    "ProcessingType",
    "Project",
    "Resource",
    "ScheduleCancelled",
    "ScheduleResult",
    "ScheduleTask",
    "TaskLedger",
    "ValidationError",
    "annotate_part",
    "annotate_projects",
    "available_types",
    "check_capability",
    "default_resources",
    "generate_schedule",
    "toggle_result",
    "toggle_task",
    "validate_inputs",
]
