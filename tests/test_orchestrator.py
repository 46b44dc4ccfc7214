from __future__ import annotations

import asyncio
import threading

from mechflow.core.models import Part, Resource
from mechflow.planning.orchestrator import PlanningOrchestrator, can_generate
from mechflow.settings import Settings
from shop_fixtures import GRINDER, LATHE, MILL, lathe_and_mill, part, project


def test_plan_annotates_and_schedules():
    projects = [project("P1", part("A", (LATHE, 2), (GRINDER, 1)), part("B", (MILL, 1)))]

    outcome = PlanningOrchestrator(Settings()).plan(projects=projects, resources=lathe_and_mill())

    assert outcome["status"] == "success"
    assert outcome["warnings"] == {"A": [GRINDER]}
    assert outcome["projects"][0].parts[0].warnings == (GRINDER,)
    result = outcome["result"]
    assert len(result.tasks) == 3
    assert outcome["message"] == result.explanation


def test_plan_reports_validation_errors():
    projects = [project("P1", part("A", (LATHE, 0)))]
    outcome = PlanningOrchestrator().plan(projects=projects, resources=lathe_and_mill())
    assert outcome["status"] == "error"
    assert outcome["result"] is None
    assert "estimated_hours" in outcome["message"]


def test_plan_reports_cancellation():
    event = threading.Event()
    event.set()
    projects = [project("P1", part("A", (LATHE, 1)))]
    outcome = PlanningOrchestrator().plan(projects=projects, resources=lathe_and_mill(), cancel_event=event)
    assert outcome["status"] == "cancelled"
    assert outcome["result"] is None


def test_plan_async_runs_in_worker_thread():
    projects = [project("P1", part("A", (LATHE, 2), (MILL, 3)), part("B", (LATHE, 4)))]
    outcome = asyncio.run(PlanningOrchestrator().plan_async(projects=projects, resources=lathe_and_mill()))
    assert outcome["status"] == "success"
    assert outcome["result"].total_duration == 6


def test_can_generate():
    analysed = project("P1", part("A", (LATHE, 1)))
    pending = project("P2", Part(part_id="B", project_id="P2", name="B", analysis_status="pending"))
    lathe = [Resource(resource_id="L", type=LATHE, name="车床", count=1)]

    assert can_generate([analysed], lathe) is True
    assert can_generate([pending], lathe) is False
    assert can_generate([analysed], []) is False
