from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

from mechflow.core.capability import annotate_projects
from mechflow.core.errors import NotFoundError, ValidationError
from mechflow.core.ledger import toggle_result
from mechflow.core.models import default_resources
from mechflow.core.report import late_projects
from mechflow.data.codec import (
    dump_json,
    load_json,
    projects_from_dicts,
    resources_from_dicts,
    schedule_result_from_dict,
    schedule_result_to_dict,
)
from mechflow.data.excel_io import write_schedule_excel
from mechflow.logging_conf import configure_logging
from mechflow.planning.orchestrator import PlanningOrchestrator, can_generate
from mechflow.settings import Settings, default_config_path, load_settings

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_NOT_FOUND = 2


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mechflow", description="MechFlow 生产排程")
    parser.add_argument("--config", type=Path, default=default_config_path())
    parser.add_argument("--log-level", type=str, default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    p_schedule = sub.add_parser("schedule", help="generate a schedule from resources + projects JSON")
    p_schedule.add_argument("input", type=Path)
    p_schedule.add_argument("--output", type=Path, default=None)
    p_schedule.add_argument("--xlsx", type=Path, default=None)
    p_schedule.add_argument("--plan-start", type=str, default=None)
    p_schedule.add_argument("--hours-per-day", type=float, default=None)

    p_check = sub.add_parser("check", help="list capability gaps per part")
    p_check.add_argument("input", type=Path)

    p_toggle = sub.add_parser("toggle", help="flip completion of one task in a schedule file")
    p_toggle.add_argument("schedule", type=Path)
    p_toggle.add_argument("task_id", type=str)
    return parser


def _load_inputs(path: Path):
    data = load_json(path)
    if not isinstance(data, dict):
        raise ValidationError(f"{path}: expected an object with 'resources' and 'projects'")
    if "resources" in data:
        resources = resources_from_dicts(data["resources"])
    else:
        resources = default_resources()
    return projects_from_dicts(data.get("projects")), resources


def cmd_schedule(args: argparse.Namespace, settings: Settings) -> int:
    projects, resources = _load_inputs(args.input)
    if not can_generate(projects, resources):
        logger.warning("Nothing to schedule: need at least one resource and one analysed part")

    outcome = PlanningOrchestrator(settings).plan(projects=projects, resources=resources)
    if outcome["status"] != "success":
        print(outcome["message"], file=sys.stderr)
        return EXIT_INVALID

    result = outcome["result"]
    plan_start = settings.plan_start or date.today()
    for project, finish in late_projects(
        result, outcome["projects"], plan_start=plan_start, hours_per_day=settings.hours_per_day
    ):
        logger.warning(
            "Project %s (%s) projected to finish %s, after its deadline %s",
            project.project_id,
            project.name,
            finish.isoformat(),
            project.deadline.isoformat(),
        )

    output = args.output or settings.output_dir / "schedule.json"
    dump_json(schedule_result_to_dict(result), output)
    logger.info("Schedule written to %s", output)
    if args.xlsx is not None:
        args.xlsx.parent.mkdir(parents=True, exist_ok=True)
        args.xlsx.write_bytes(write_schedule_excel(result))
        logger.info("Schedule workbook written to %s", args.xlsx)

    print(f"总预估周期: {result.total_duration:g} 小时")
    print(result.explanation)
    return EXIT_OK


def cmd_check(args: argparse.Namespace, settings: Settings) -> int:
    projects, resources = _load_inputs(args.input)
    for project in annotate_projects(projects, resources):
        for part in project.parts:
            status = "产能警告: " + ", ".join(part.warnings) if part.warnings else "OK"
            print(f"{project.project_id}\t{part.part_id}\t{part.name}\t{status}")
    return EXIT_OK


def cmd_toggle(args: argparse.Namespace, settings: Settings) -> int:
    result = schedule_result_from_dict(load_json(args.schedule))
    try:
        result = toggle_result(result, args.task_id)
    except NotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_NOT_FOUND
    dump_json(schedule_result_to_dict(result), args.schedule)
    task = result.get_task(args.task_id)
    print(f"{task.task_id}\t{'完成' if task.completed else '未完成'}\t{task.completed_at or ''}")
    return EXIT_OK


COMMANDS = {
    "schedule": cmd_schedule,
    "check": cmd_check,
    "toggle": cmd_toggle,
}


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    overrides = {"log_level": args.log_level}
    if args.command == "schedule":
        overrides.update({"plan_start": args.plan_start, "hours_per_day": args.hours_per_day})
    settings = load_settings(args.config, **overrides)
    configure_logging(settings.log_level)

    try:
        return COMMANDS[args.command](args, settings)
    except ValidationError as exc:
        logger.error("%s", exc)
        return EXIT_INVALID
    except OSError as exc:
        logger.error("Cannot read or write %s: %s", exc.filename, exc.strerror)
        return EXIT_INVALID


if __name__ in {"__main__", "__mp_main__"}:
    sys.exit(main())
