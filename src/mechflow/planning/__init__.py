from __future__ import annotations

from mechflow.planning.orchestrator import PlanningOrchestrator, can_generate

__all__ = [
    "PlanningOrchestrator",
    "can_generate",
]
