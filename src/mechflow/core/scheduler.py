from __future__ import annotations

import heapq
import math
from collections.abc import Iterable
from datetime import date, datetime
from typing import Protocol

from mechflow.core.errors import ScheduleCancelled, ValidationError
from mechflow.core.models import (
    OUTSOURCE_PREFIX,
    OUTSOURCE_RESOURCE_ID,
    ManufacturingStep,
    Part,
    Project,
    Resource,
    ScheduleResult,
    ScheduleTask,
)


class CancelEvent(Protocol):
    def is_set(self) -> bool: ...


def _blank(value: object) -> bool:
    return value is None or not str(value).strip()


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _validate_step(project: Project, part: Part, step: ManufacturingStep) -> None:
    where = f"project {project.project_id!r} / part {part.part_id!r}"
    if _blank(step.step_id):
        raise ValidationError(f"{where}: step without step_id")
    if _blank(step.process_type):
        raise ValidationError(f"{where}: step {step.step_id!r} has an empty process_type")
    if not _is_int(step.order) or step.order < 1:
        raise ValidationError(f"{where}: step {step.step_id!r} has invalid order {step.order!r}")
    hours = step.estimated_hours
    if isinstance(hours, bool) or not isinstance(hours, (int, float)) or not math.isfinite(hours) or hours <= 0:
        raise ValidationError(f"{where}: step {step.step_id!r} has invalid estimated_hours {hours!r}")


def validate_inputs(*, projects: Iterable[Project], resources: Iterable[Resource]) -> None:
    """Raise ValidationError on the first malformed resource, project, part or step."""
    resources = list(resources)
    for r in resources:
        if _blank(r.resource_id):
            raise ValidationError(f"resource {r.name!r} has no id")
        if _blank(r.type):
            raise ValidationError(f"resource {r.resource_id!r} has an empty type")
        if not _is_int(r.count) or r.count < 1:
            raise ValidationError(f"resource {r.resource_id!r} has invalid count {r.count!r}")

    resource_ids: set[str] = set()
    for r in resources:
        if r.resource_id in resource_ids:
            raise ValidationError(f"duplicate resource id {r.resource_id!r}")
        resource_ids.add(r.resource_id)
    # Instance ids must stay unique across the shop, e.g. "L" x2 next to a resource "L-0".
    instance_ids: set[str] = set()
    for r in resources:
        for idx in range(r.count):
            instance_id = _instance_label(r, idx)[0]
            if instance_id in instance_ids:
                raise ValidationError(
                    f"resource {r.resource_id!r}: instance id {instance_id!r} clashes with another resource"
                )
            instance_ids.add(instance_id)

    for project in projects:
        if _blank(project.project_id):
            raise ValidationError(f"project {project.name!r} has no id")
        deadline = project.deadline
        if deadline is not None and (not isinstance(deadline, date) or isinstance(deadline, datetime)):
            raise ValidationError(f"project {project.project_id!r} has invalid deadline {deadline!r}")
        for part in project.parts:
            if _blank(part.part_id):
                raise ValidationError(f"project {project.project_id!r}: part {part.name!r} has no id")
            seen_orders: set[int] = set()
            for step in part.steps:
                _validate_step(project, part, step)
                if step.order in seen_orders:
                    raise ValidationError(
                        f"project {project.project_id!r} / part {part.part_id!r}: duplicate step order {step.order}"
                    )
                seen_orders.add(step.order)


def _instance_label(resource: Resource, index: int) -> tuple[str, str]:
    if resource.count == 1:
        return resource.resource_id, resource.name
    return f"{resource.resource_id}-{index}", f"{resource.name} #{index + 1}"


def build_explanation(*, part_count: int, task_count: int, outsourced: list[str]) -> str:
    if task_count == 0:
        return "没有可排产的工序。"
    head = f"按截止日期优先、零件列表顺序排产，共 {part_count} 个零件、{task_count} 道工序。"
    if outsourced:
        return head + "工厂无对应产能而安排外发的工艺：" + "、".join(outsourced) + "。"
    return head + "所有工序均由厂内资源完成，无外发。"


def generate_schedule(
    *,
    projects: Iterable[Project],
    resources: Iterable[Resource],
    cancel_event: CancelEvent | None = None,
) -> ScheduleResult:
    """Deterministic greedy list scheduling with outsourcing fallback.

    - Projects by deadline ascending (no deadline last), ties by input position.
    - Parts inside a project by listing order; a part's steps keep its rank.
    - Steps of one part run strictly in `order`.
    - An in-house step takes the instance of its resource type that frees up
      first (lowest index on ties) and starts at max(previous step end, instance free).
    - A step whose process type no resource offers goes to OUTSOURCE, which has
      unlimited capacity and only waits on the previous step of the same part.

    `cancel_event` is polled between steps; when set, ScheduleCancelled is raised
    and nothing is returned.

    Returns:
        ScheduleResult with one task per scheduled step.
    """
    projects = list(projects)
    resources = list(resources)
    validate_inputs(projects=projects, resources=resources)

    # Instances of every resource sharing a type form one pool, in listing order.
    instances: dict[str, list[tuple[str, str]]] = {}
    for r in resources:
        for idx in range(r.count):
            instances.setdefault(r.type, []).append(_instance_label(r, idx))
    # type -> heap of (free_at, instance index)
    free_at: dict[str, list[tuple[float, int]]] = {
        t: [(0.0, i) for i in range(len(pool))] for t, pool in instances.items()
    }

    ranked = sorted(enumerate(projects), key=lambda x: (x[1].deadline or date.max, x[0]))

    parts_by_key: dict[tuple[int, int], tuple[Project, Part, list[ManufacturingStep]]] = {}
    heads: list[tuple[int, int, int]] = []
    for project_rank, (_, project) in enumerate(ranked):
        for part_rank, part in enumerate(project.parts):
            if part.analysis_status != "done":
                continue
            steps = part.ordered_steps()
            if not steps:
                continue
            parts_by_key[(project_rank, part_rank)] = (project, part, steps)
            heads.append((project_rank, part_rank, 0))
    heapq.heapify(heads)

    ready_at: dict[tuple[int, int], float] = {}
    tasks: list[ScheduleTask] = []
    outsourced: list[str] = []

    while heads:
        if cancel_event is not None and cancel_event.is_set():
            raise ScheduleCancelled(f"schedule cancelled after {len(tasks)} steps")

        project_rank, part_rank, step_idx = heapq.heappop(heads)
        key = (project_rank, part_rank)
        project, part, steps = parts_by_key[key]
        step = steps[step_idx]

        earliest = ready_at.get(key, 0.0)
        duration = float(step.estimated_hours)
        track = free_at.get(step.process_type)
        if track:
            instance_free, instance_idx = heapq.heappop(track)
            start = max(earliest, instance_free)
            heapq.heappush(track, (start + duration, instance_idx))
            resource_id, resource_name = instances[step.process_type][instance_idx]
        else:
            start = earliest
            resource_id = OUTSOURCE_RESOURCE_ID
            resource_name = OUTSOURCE_PREFIX + step.process_type
            if step.process_type not in outsourced:
                outsourced.append(step.process_type)

        tasks.append(
            ScheduleTask(
                task_id=f"T{len(tasks) + 1:04d}",
                part_id=part.part_id,
                part_name=part.name,
                project_id=project.project_id,
                project_name=project.name,
                resource_id=resource_id,
                resource_name=resource_name,
                start_time=start,
                duration=duration,
                description=step.description,
            )
        )
        ready_at[key] = start + duration

        if step_idx + 1 < len(steps):
            heapq.heappush(heads, (project_rank, part_rank, step_idx + 1))

    total = max((t.end_time for t in tasks), default=0.0)
    return ScheduleResult(
        total_duration=total,
        explanation=build_explanation(part_count=len(ready_at), task_count=len(tasks), outsourced=outsourced),
        tasks=tuple(tasks),
    )
