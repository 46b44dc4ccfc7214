from __future__ import annotations

import threading
from datetime import datetime

import pytest

from mechflow.core.errors import NotFoundError
from mechflow.core.ledger import TaskLedger, toggle_result, toggle_task
from mechflow.core.scheduler import generate_schedule
from shop_fixtures import LATHE, MILL, lathe_and_mill, part, project

NOW = datetime(2026, 10, 19, 8, 30, 15)


@pytest.fixture()
def result():
    projects = [project("P1", part("A", (LATHE, 2), (MILL, 3)), part("B", (LATHE, 4)))]
    return generate_schedule(projects=projects, resources=lathe_and_mill())


def test_toggle_marks_complete_with_timestamp(result):
    tasks = toggle_task(result.tasks, "T0001", now=NOW)
    done = tasks[0]
    assert done.completed is True
    assert done.completed_at == "2026-10-19T08:30:15"
    # plan fields never move
    before = result.tasks[0]
    assert (done.start_time, done.duration, done.resource_id) == (before.start_time, before.duration, before.resource_id)
    # other tasks untouched, input untouched
    assert tasks[1:] == result.tasks[1:]
    assert result.tasks[0].completed is False


def test_toggle_twice_restores_state(result):
    once = toggle_task(result.tasks, "T0002", now=NOW)
    twice = toggle_task(once, "T0002", now=NOW)
    assert twice[1].completed is False
    assert twice[1].completed_at is None
    assert twice == result.tasks


def test_toggle_without_now_uses_clock(result):
    tasks = toggle_task(result.tasks, "T0001")
    datetime.fromisoformat(tasks[0].completed_at)


def test_unknown_task_raises(result):
    with pytest.raises(NotFoundError) as exc_info:
        toggle_task(result.tasks, "nope")
    assert exc_info.value.task_id == "nope"
    with pytest.raises(LookupError):
        toggle_result(result, "nope")


def test_toggle_result_keeps_summary(result):
    updated = toggle_result(result, "T0003", now=NOW)
    assert updated.total_duration == result.total_duration
    assert updated.explanation == result.explanation
    assert updated.get_task("T0003").completed is True


def test_ledger_concurrent_toggles_on_different_tasks(result):
    ledger = TaskLedger(result)
    ids = [t.task_id for t in result.tasks]
    threads = [threading.Thread(target=ledger.toggle, args=(task_id,), kwargs={"now": NOW}) for task_id in ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert ledger.progress() == (len(ids), len(ids))
    assert all(t.completed_at == NOW.isoformat() for t in ledger.result.tasks)


def test_ledger_toggle_returns_updated_task(result):
    ledger = TaskLedger(result)
    task = ledger.toggle("T0001", now=NOW)
    assert task.completed is True
    assert ledger.progress() == (1, 3)
    ledger.toggle("T0001")
    assert ledger.progress() == (0, 3)
