"""Boundary with the drawing-analysis service.

The service reads a technical drawing and answers with
``{"partName": str, "steps": [{"processType", "estimatedHours", "description"}]}``.
Nothing in that answer is trusted: it is coerced here, numbered, and run
through the capability check before it can reach the scheduler.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from uuid import uuid4

from mechflow.core.capability import available_types, check_capability
from mechflow.core.errors import ValidationError
from mechflow.core.models import ManufacturingStep, Part, Resource
from mechflow.data.coerce import clean_str, coerce_float

UNKNOWN_PART_NAME = "未知零件"


def _new_step_id() -> str:
    return str(uuid4())


def parse_analysis_steps(
    raw_steps,
    *,
    new_step_id: Callable[[], str] | None = None,
) -> tuple[ManufacturingStep, ...]:
    """Number the service's steps 1..n in the order it listed them."""
    if raw_steps is None:
        return ()
    if isinstance(raw_steps, (str, bytes)) or not isinstance(raw_steps, Iterable):
        raise ValidationError("analysis steps must be a list")

    make_id = new_step_id or _new_step_id
    steps: list[ManufacturingStep] = []
    for idx, raw in enumerate(raw_steps, start=1):
        if not isinstance(raw, Mapping):
            raise ValidationError(f"analysis step {idx} must be an object")
        process_type = clean_str(raw.get("processType"))
        if not process_type:
            raise ValidationError(f"analysis step {idx}: processType is empty")
        hours = coerce_float(raw.get("estimatedHours"), field=f"analysis step {idx}: estimatedHours")
        if hours <= 0:
            raise ValidationError(f"analysis step {idx}: estimatedHours must be > 0, got {hours}")
        steps.append(
            ManufacturingStep(
                step_id=make_id(),
                order=idx,
                description=clean_str(raw.get("description")),
                process_type=process_type,
                estimated_hours=hours,
            )
        )
    return tuple(steps)


def apply_drawing_analysis(
    part: Part,
    payload,
    resources: Iterable[Resource],
    *,
    new_step_id: Callable[[], str] | None = None,
) -> Part:
    """Return `part` rebuilt from an analysis answer, with capability warnings."""
    if not isinstance(payload, Mapping):
        raise ValidationError("analysis payload must be an object")
    steps = parse_analysis_steps(payload.get("steps"), new_step_id=new_step_id)
    return replace(
        part,
        name=clean_str(payload.get("partName"), default=UNKNOWN_PART_NAME),
        steps=steps,
        warnings=check_capability(steps, available_types(resources)),
        analysis_status="done",
    )


def mark_analysis_started(part: Part) -> Part:
    return replace(part, analysis_status="analyzing")


def mark_analysis_failed(part: Part) -> Part:
    return replace(part, analysis_status="error")
