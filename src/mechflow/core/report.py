from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import date, timedelta

from mechflow.core.models import Project, ScheduleResult, ScheduleTask


def group_tasks(result: ScheduleResult) -> dict[str, dict[str, list[ScheduleTask]]]:
    """project_id -> part_id -> tasks sorted by start time (first-seen order of keys)."""
    grouped: dict[str, dict[str, list[ScheduleTask]]] = {}
    for task in result.tasks:
        grouped.setdefault(task.project_id, {}).setdefault(task.part_id, []).append(task)
    for parts in grouped.values():
        for tasks in parts.values():
            tasks.sort(key=lambda t: (t.start_time, t.task_id))
    return grouped


def project_completion(result: ScheduleResult) -> dict[str, float]:
    finish: dict[str, float] = {}
    for task in result.tasks:
        finish[task.project_id] = max(finish.get(task.project_id, 0.0), task.end_time)
    return finish


def finish_date(hours: float, *, plan_start: date, hours_per_day: float) -> date:
    """Calendar date on which `hours` of work ends at `hours_per_day` per day."""
    if hours_per_day <= 0:
        raise ValueError("hours_per_day must be > 0")
    days = math.ceil(hours / hours_per_day)
    return plan_start + timedelta(days=max(days - 1, 0))


def late_projects(
    result: ScheduleResult,
    projects: Iterable[Project],
    *,
    plan_start: date,
    hours_per_day: float = 8.0,
) -> list[tuple[Project, date]]:
    """Projects whose projected finish falls after their deadline.

    The scheduler never fails a project for its deadline; this only reports the risk.
    """
    finish = project_completion(result)
    late: list[tuple[Project, date]] = []
    for project in projects:
        if project.deadline is None or project.project_id not in finish:
            continue
        done = finish_date(finish[project.project_id], plan_start=plan_start, hours_per_day=hours_per_day)
        if done > project.deadline:
            late.append((project, done))
    return late


def resource_utilization(result: ScheduleResult) -> dict[str, float]:
    """Busy hours per in-house resource instance (outsourced work excluded)."""
    busy: dict[str, float] = {}
    for task in result.tasks:
        if task.is_outsourced:
            continue
        busy[task.resource_id] = busy.get(task.resource_id, 0.0) + task.duration
    return busy
