"""JSON wire format for the configuration layer and for schedule results.

Keys are camelCase, matching what the front end and the drawing-analysis
service exchange. Structure errors raise ValidationError; value rules
(positive hours, unique step order...) are enforced by the scheduler.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from mechflow.core.errors import ValidationError
from mechflow.core.models import (
    ANALYSIS_STATUSES,
    ManufacturingStep,
    Part,
    Project,
    Resource,
    ScheduleResult,
    ScheduleTask,
)
from mechflow.data.coerce import clean_str, coerce_date, coerce_float, coerce_int, require_str


def _mapping(value, *, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValidationError(f"{what} must be an object, got {type(value).__name__}")
    return value


def _sequence(value, *, what: str) -> list:
    if value is None:
        return []
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        raise ValidationError(f"{what} must be a list")
    return list(value)


# --- configuration layer -------------------------------------------------


def resource_from_dict(data) -> Resource:
    d = _mapping(data, what="resource")
    return Resource(
        resource_id=require_str(d.get("id"), field="resource.id"),
        type=clean_str(d.get("type")),
        name=clean_str(d.get("name")),
        count=coerce_int(d.get("count", 1), field="resource.count"),
    )


def resources_from_dicts(rows) -> list[Resource]:
    return [resource_from_dict(r) for r in _sequence(rows, what="resources")]


def resources_to_dicts(resources: Iterable[Resource]) -> list[dict]:
    return [{"id": r.resource_id, "type": r.type, "name": r.name, "count": r.count} for r in resources]


def step_from_dict(data) -> ManufacturingStep:
    d = _mapping(data, what="step")
    return ManufacturingStep(
        step_id=require_str(d.get("stepId"), field="step.stepId"),
        order=coerce_int(d.get("order"), field="step.order"),
        description=clean_str(d.get("description")),
        process_type=clean_str(d.get("processType")),
        estimated_hours=coerce_float(d.get("estimatedHours"), field="step.estimatedHours"),
    )


def part_from_dict(data, *, project_id: str) -> Part:
    d = _mapping(data, what="part")
    status = clean_str(d.get("analysisStatus"), default="done")
    if status not in ANALYSIS_STATUSES:
        raise ValidationError(f"part.analysisStatus not supported: {status!r}")
    warnings: list[str] = []
    for w in _sequence(d.get("warnings"), what="part.warnings"):
        w = clean_str(w)
        if w and w not in warnings:
            warnings.append(w)
    return Part(
        part_id=require_str(d.get("id"), field="part.id"),
        project_id=clean_str(d.get("projectId"), default=project_id),
        name=clean_str(d.get("name")),
        steps=tuple(step_from_dict(s) for s in _sequence(d.get("steps"), what="part.steps")),
        warnings=tuple(warnings),
        analysis_status=status,
    )


def project_from_dict(data) -> Project:
    d = _mapping(data, what="project")
    project_id = require_str(d.get("id"), field="project.id")
    return Project(
        project_id=project_id,
        name=clean_str(d.get("name")),
        deadline=coerce_date(d.get("deadline"), field="project.deadline"),
        parts=tuple(part_from_dict(p, project_id=project_id) for p in _sequence(d.get("parts"), what="project.parts")),
        color=clean_str(d.get("color")) or None,
    )


def projects_from_dicts(rows) -> list[Project]:
    return [project_from_dict(p) for p in _sequence(rows, what="projects")]


def step_to_dict(step: ManufacturingStep) -> dict:
    return {
        "stepId": step.step_id,
        "order": step.order,
        "description": step.description,
        "processType": step.process_type,
        "estimatedHours": step.estimated_hours,
    }


def projects_to_dicts(projects: Iterable[Project]) -> list[dict]:
    out: list[dict] = []
    for p in projects:
        out.append(
            {
                "id": p.project_id,
                "name": p.name,
                "deadline": p.deadline.isoformat() if p.deadline else "",
                "color": p.color,
                "parts": [
                    {
                        "id": part.part_id,
                        "projectId": part.project_id,
                        "name": part.name,
                        "analysisStatus": part.analysis_status,
                        "warnings": list(part.warnings),
                        "steps": [step_to_dict(s) for s in part.steps],
                    }
                    for part in p.parts
                ],
            }
        )
    return out


# --- schedule result -----------------------------------------------------


def task_to_dict(task: ScheduleTask) -> dict:
    row = {
        "taskId": task.task_id,
        "partId": task.part_id,
        "partName": task.part_name,
        "projectId": task.project_id,
        "projectName": task.project_name,
        "resourceId": task.resource_id,
        "resourceName": task.resource_name,
        "startTime": task.start_time,
        "duration": task.duration,
        "description": task.description,
        "completed": task.completed,
    }
    if task.completed_at:
        row["completedAt"] = task.completed_at
    return row


def _flag(value, *, field: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValidationError(f"{field}: expected true/false, got {value!r}")
    return value


def task_from_dict(data) -> ScheduleTask:
    d = _mapping(data, what="task")
    return ScheduleTask(
        task_id=require_str(d.get("taskId"), field="task.taskId"),
        part_id=require_str(d.get("partId"), field="task.partId"),
        part_name=clean_str(d.get("partName")),
        project_id=clean_str(d.get("projectId")),
        project_name=clean_str(d.get("projectName")),
        resource_id=require_str(d.get("resourceId"), field="task.resourceId"),
        resource_name=clean_str(d.get("resourceName")),
        start_time=coerce_float(d.get("startTime"), field="task.startTime"),
        duration=coerce_float(d.get("duration"), field="task.duration"),
        description=clean_str(d.get("description")),
        completed=_flag(d.get("completed", False), field="task.completed"),
        completed_at=clean_str(d.get("completedAt")) or None,
    )


def schedule_result_to_dict(result: ScheduleResult) -> dict:
    return {
        "totalDuration": result.total_duration,
        "explanation": result.explanation,
        "tasks": [task_to_dict(t) for t in result.tasks],
    }


def schedule_result_from_dict(data) -> ScheduleResult:
    d = _mapping(data, what="schedule")
    return ScheduleResult(
        total_duration=coerce_float(d.get("totalDuration", 0), field="totalDuration"),
        explanation=clean_str(d.get("explanation")),
        tasks=tuple(task_from_dict(t) for t in _sequence(d.get("tasks"), what="tasks")),
    )


# --- files ---------------------------------------------------------------


def load_json(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as exc:
            raise ValidationError(f"{path}: invalid JSON ({exc})") from exc


def dump_json(data: Any, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
