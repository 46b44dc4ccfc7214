from __future__ import annotations

from mechflow.core.capability import annotate_part, annotate_projects, available_types, check_capability
from mechflow.core.models import ManufacturingStep, Resource
from shop_fixtures import GRINDER, HEAT_TREAT, LATHE, MILL, lathe_and_mill, part, project, steps


def _step(process_type: str) -> ManufacturingStep:
    return ManufacturingStep(step_id="s", order=1, description="", process_type=process_type, estimated_hours=1)


def test_missing_type_is_flagged():
    assert check_capability([_step("Grinder")], {"Lathe"}) == ("Grinder",)


def test_other_never_warns():
    assert check_capability([_step("Other")], set()) == ()
    assert check_capability([_step("其他")], set()) == ()


def test_empty_input():
    assert check_capability([], {"Lathe"}) == ()


def test_first_seen_order_without_duplicates():
    s = steps("A", (GRINDER, 1), (LATHE, 1), (HEAT_TREAT, 1), (GRINDER, 2))
    assert check_capability(s, {LATHE}) == (GRINDER, HEAT_TREAT)


def test_available_types_collects_resource_types():
    resources = lathe_and_mill() + [Resource(resource_id="L2", type=LATHE, name="车床二", count=3)]
    assert available_types(resources) == {LATHE, MILL}


def test_annotate_leaves_steps_untouched():
    original = part("A", (LATHE, 1), (GRINDER, 2))
    annotated = annotate_part(original, lathe_and_mill())
    assert annotated.warnings == (GRINDER,)
    assert annotated.steps == original.steps
    # value semantics: the input part is unchanged
    assert original.warnings == ()


def test_annotate_projects_refreshes_every_part():
    projects = [
        project("P1", part("A", (MILL, 1), warnings=("stale",)), part("B", (HEAT_TREAT, 1))),
        project("P2", part("C", (LATHE, 1), project_id="P2"), deadline=None),
    ]
    annotated = annotate_projects(projects, lathe_and_mill())
    warnings = {pt.part_id: pt.warnings for p in annotated for pt in p.parts}
    assert warnings == {"A": (), "B": (HEAT_TREAT,), "C": ()}
