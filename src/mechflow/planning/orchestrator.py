from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from mechflow.core.capability import annotate_projects
from mechflow.core.errors import ScheduleCancelled, ValidationError
from mechflow.core.models import Project, Resource
from mechflow.core.scheduler import CancelEvent, generate_schedule
from mechflow.settings import Settings

logger = logging.getLogger(__name__)


def can_generate(projects: Iterable[Project], resources: Iterable[Resource]) -> bool:
    """At least one resource and one analysed part with steps."""
    if not list(resources):
        return False
    return any(part.analysis_status == "done" and part.steps for p in projects for part in p.parts)


class PlanningOrchestrator:
    """Runs one planning invocation: capability check, then scheduling.

    The core raises typed errors and never logs; this layer logs them and
    turns them into status dicts for the caller.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()

    async def plan_async(
        self,
        *,
        projects: Iterable[Project],
        resources: Iterable[Resource],
        cancel_event: CancelEvent | None = None,
    ) -> dict:
        # Large instances take a while; keep the event loop responsive.
        return await asyncio.to_thread(
            self.plan, projects=list(projects), resources=list(resources), cancel_event=cancel_event
        )

    def plan(
        self,
        *,
        projects: Iterable[Project],
        resources: Iterable[Resource],
        cancel_event: CancelEvent | None = None,
    ) -> dict:
        """Annotate parts with capability warnings and build the schedule.

        Returns:
            dict with keys: status ("success"|"error"|"cancelled"), message,
            result (ScheduleResult | None), projects (annotated), warnings
            ({part_id: [process types]}).
        """
        resources = list(resources)
        annotated = annotate_projects(projects, resources)
        warnings = {part.part_id: list(part.warnings) for p in annotated for part in p.parts if part.warnings}
        for part_id, types in warnings.items():
            logger.warning("Part %s needs process types the shop lacks: %s", part_id, ", ".join(types))

        try:
            result = generate_schedule(projects=annotated, resources=resources, cancel_event=cancel_event)
        except ValidationError as exc:
            logger.error("Schedule rejected: %s", exc)
            return {
                "status": "error",
                "message": f"Validation failed: {exc}",
                "result": None,
                "projects": annotated,
                "warnings": warnings,
            }
        except ScheduleCancelled as exc:
            logger.info("Schedule cancelled: %s", exc)
            return {
                "status": "cancelled",
                "message": str(exc),
                "result": None,
                "projects": annotated,
                "warnings": warnings,
            }

        outsourced = sum(1 for t in result.tasks if t.is_outsourced)
        logger.info(
            "Schedule ready: %d tasks (%d outsourced), total %.2f h",
            len(result.tasks),
            outsourced,
            result.total_duration,
        )
        return {
            "status": "success",
            "message": result.explanation,
            "result": result,
            "projects": annotated,
            "warnings": warnings,
        }
