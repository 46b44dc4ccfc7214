from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum


OUTSOURCE_RESOURCE_ID = "OUTSOURCE"
OUTSOURCE_PREFIX = "外发-"

# Generic/unclassified process, always assumed feasible in-house or outside.
OTHER_PROCESS_TYPES = frozenset({"Other", "其他"})

ANALYSIS_STATUSES = ("pending", "analyzing", "done", "error")


class ProcessingType(str, Enum):
    LATHE = "车床"
    MILL = "铣床"
    PLANER = "刨床"
    DRILL = "钻床"
    WELDER = "焊工"
    FITTER = "钳工"
    SAWING = "锯床"
    TAPPING = "攻丝机"
    OTHER = "其他"


@dataclass(frozen=True)
class Resource:
    """One resource type with `count` interchangeable parallel instances."""

    resource_id: str
    type: str
    name: str
    count: int = 1


@dataclass(frozen=True)
class ManufacturingStep:
    step_id: str
    order: int  # 1-based
    description: str
    process_type: str
    estimated_hours: float


@dataclass(frozen=True)
class Part:
    part_id: str
    project_id: str
    name: str
    steps: tuple[ManufacturingStep, ...] = ()
    # Written only by the capability check.
    warnings: tuple[str, ...] = ()
    analysis_status: str = "done"

    def ordered_steps(self) -> list[ManufacturingStep]:
        return sorted(self.steps, key=lambda s: s.order)


@dataclass(frozen=True)
class Project:
    project_id: str
    name: str
    deadline: date | None
    parts: tuple[Part, ...] = ()
    color: str | None = None


@dataclass(frozen=True)
class ScheduleTask:
    task_id: str
    part_id: str
    part_name: str
    project_id: str
    project_name: str
    resource_id: str
    resource_name: str
    start_time: float  # hours from T=0
    duration: float  # hours
    description: str
    completed: bool = False
    completed_at: str | None = None

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration

    @property
    def is_outsourced(self) -> bool:
        return self.resource_id == OUTSOURCE_RESOURCE_ID


@dataclass(frozen=True)
class ScheduleResult:
    total_duration: float
    explanation: str
    tasks: tuple[ScheduleTask, ...] = ()

    def get_task(self, task_id: str) -> ScheduleTask | None:
        for task in self.tasks:
            if task.task_id == task_id:
                return task
        return None


def default_resources() -> list[Resource]:
    """Demo shop: one of each common machine/worker."""
    return [
        Resource(resource_id="1", type=ProcessingType.SAWING.value, name="卧式带锯床", count=1),
        Resource(resource_id="2", type=ProcessingType.LATHE.value, name="数控车床 A组", count=1),
        Resource(resource_id="3", type=ProcessingType.MILL.value, name="立式铣床", count=1),
        Resource(resource_id="4", type=ProcessingType.TAPPING.value, name="自动攻丝机", count=1),
        Resource(resource_id="5", type=ProcessingType.WELDER.value, name="高级焊工", count=1),
    ]
