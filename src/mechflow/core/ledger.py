from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime

from mechflow.core.errors import NotFoundError
from mechflow.core.models import ScheduleResult, ScheduleTask


def _stamp(now: datetime | None) -> str:
    return (now or datetime.now()).isoformat(timespec="seconds")


def toggle_task(
    tasks: Iterable[ScheduleTask],
    task_id: str,
    *,
    now: datetime | None = None,
) -> tuple[ScheduleTask, ...]:
    """Flip completion of one task and return the new collection.

    false -> true stamps `completed_at`, true -> false clears it. Plan fields
    (start_time, duration, resource_id) are never touched.
    """
    out: list[ScheduleTask] = []
    found = False
    for task in tasks:
        if task.task_id == task_id and not found:
            found = True
            if task.completed:
                task = replace(task, completed=False, completed_at=None)
            else:
                task = replace(task, completed=True, completed_at=_stamp(now))
        out.append(task)
    if not found:
        raise NotFoundError(task_id)
    return tuple(out)


def toggle_result(result: ScheduleResult, task_id: str, *, now: datetime | None = None) -> ScheduleResult:
    return replace(result, tasks=toggle_task(result.tasks, task_id, now=now))


class TaskLedger:
    """Completion state over a caller-owned schedule.

    Each toggle swaps the whole result under a lock, so toggles on different
    tasks never lose each other's update; two toggles on the same task resolve
    last-write-wins.
    """

    def __init__(self, result: ScheduleResult):
        self._result = result
        self._lock = threading.Lock()

    @property
    def result(self) -> ScheduleResult:
        return self._result

    def toggle(self, task_id: str, *, now: datetime | None = None) -> ScheduleTask:
        with self._lock:
            tasks = toggle_task(self._result.tasks, task_id, now=now)
            self._result = replace(self._result, tasks=tasks)
        return next(t for t in tasks if t.task_id == task_id)

    def progress(self) -> tuple[int, int]:
        tasks = self._result.tasks
        return sum(1 for t in tasks if t.completed), len(tasks)
