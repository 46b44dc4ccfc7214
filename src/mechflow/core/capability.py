from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from mechflow.core.models import OTHER_PROCESS_TYPES, ManufacturingStep, Part, Project, Resource


def available_types(resources: Iterable[Resource]) -> set[str]:
    return {r.type for r in resources}


def check_capability(steps: Iterable[ManufacturingStep], available: Iterable[str]) -> tuple[str, ...]:
    """Return the process types the shop cannot perform, in first-seen order."""
    available_set = set(available)
    warnings: list[str] = []
    for step in steps:
        process_type = step.process_type
        if process_type in available_set or process_type in OTHER_PROCESS_TYPES:
            continue
        if process_type not in warnings:
            warnings.append(process_type)
    return tuple(warnings)


def annotate_part(part: Part, resources: Iterable[Resource]) -> Part:
    return replace(part, warnings=check_capability(part.steps, available_types(resources)))


def annotate_projects(projects: Iterable[Project], resources: Iterable[Resource]) -> tuple[Project, ...]:
    """Attach capability warnings to every part. Steps are left untouched."""
    types = available_types(resources)
    out: list[Project] = []
    for project in projects:
        parts = tuple(replace(p, warnings=check_capability(p.steps, types)) for p in project.parts)
        out.append(replace(project, parts=parts))
    return tuple(out)
