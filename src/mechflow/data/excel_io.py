from __future__ import annotations

import io
import re
import unicodedata

import pandas as pd

from mechflow.core.errors import ValidationError
from mechflow.core.models import ManufacturingStep, Part, Project, Resource, ScheduleResult
from mechflow.data.coerce import clean_str, coerce_date, coerce_float, coerce_int, require_str

SCHEDULE_SHEET = "排程"

SCHEDULE_COLUMNS = [
    "task_id",
    "project_id",
    "project_name",
    "part_id",
    "part_name",
    "resource_id",
    "resource_name",
    "start_time",
    "end_time",
    "duration",
    "description",
    "outsourced",
    "completed",
    "completed_at",
]

# Accepted header aliases -> canonical column
_ALIASES = {
    "resource_id": "id",
    "tipo": "type",
    "process": "process_type",
    "processtype": "process_type",
    "hours": "estimated_hours",
    "estimatedhours": "estimated_hours",
    "step_order": "order",
}


def read_excel_bytes(content: bytes, *, sheet_name: str | int = 0) -> pd.DataFrame:
    """Read .xlsx bytes into a DataFrame with normalized column names."""
    bio = io.BytesIO(content)
    df = pd.read_excel(bio, sheet_name=sheet_name, engine="openpyxl")
    return normalize_columns(df)


def normalize_col_name(name: str) -> str:
    """Normalize headers to an ASCII-ish snake_case token.

    Handles accents, non-breaking spaces, tabs and punctuation.
    """
    s = str(name or "").strip().lower()
    s = unicodedata.normalize("NFKD", s)
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    s = s.replace("\u00a0", " ")
    s = re.sub(r"[\s\t]+", " ", s)
    s = re.sub(r"[^a-z0-9 ]+", " ", s)
    s = re.sub(r"\s+", "_", s).strip("_")
    return _ALIASES.get(s, s)


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [normalize_col_name(c) for c in df.columns]
    return df


def _records(df: pd.DataFrame) -> list[dict]:
    """Rows as dicts with NaN/NaT cells turned into None."""
    return [
        {k: (None if not isinstance(v, str) and pd.isna(v) else v) for k, v in row.items()}
        for row in df.to_dict(orient="records")
    ]


def _require_columns(df: pd.DataFrame, required: set[str]) -> None:
    missing = sorted(required - set(df.columns))
    if missing:
        raise ValidationError(f"missing columns: {missing}. Found: {sorted(df.columns)}")


def read_resources_excel(content: bytes) -> list[Resource]:
    """One row per resource type: id, type, name, count."""
    df = read_excel_bytes(content)
    _require_columns(df, {"id", "type"})
    resources: list[Resource] = []
    for row_no, row in enumerate(_records(df), start=2):
        rid = clean_str(row.get("id"))
        if not rid and not clean_str(row.get("type")):
            continue  # blank line
        resources.append(
            Resource(
                resource_id=require_str(rid, field=f"row {row_no}: id"),
                type=clean_str(row.get("type")),
                name=clean_str(row.get("name")),
                count=coerce_int(row.get("count", 1), field=f"row {row_no}: count"),
            )
        )
    return resources


def read_projects_excel(content: bytes) -> list[Project]:
    """One row per step; rows are grouped into projects and parts in first-seen order."""
    df = read_excel_bytes(content)
    _require_columns(df, {"project_id", "part_id", "order", "process_type", "estimated_hours"})

    projects: dict[str, dict] = {}
    for row_no, row in enumerate(_records(df), start=2):
        project_id = clean_str(row.get("project_id"))
        if not project_id:
            continue
        project = projects.setdefault(
            project_id,
            {
                "name": clean_str(row.get("project_name"), default=project_id),
                "deadline": coerce_date(row.get("deadline"), field=f"row {row_no}: deadline"),
                "parts": {},
            },
        )
        part_id = require_str(row.get("part_id"), field=f"row {row_no}: part_id")
        part = project["parts"].setdefault(
            part_id, {"name": clean_str(row.get("part_name"), default=part_id), "steps": []}
        )
        order = coerce_int(row.get("order"), field=f"row {row_no}: order")
        part["steps"].append(
            ManufacturingStep(
                step_id=clean_str(row.get("step_id"), default=f"{part_id}-{order}"),
                order=order,
                description=clean_str(row.get("description")),
                process_type=clean_str(row.get("process_type")),
                estimated_hours=coerce_float(row.get("estimated_hours"), field=f"row {row_no}: estimated_hours"),
            )
        )

    return [
        Project(
            project_id=project_id,
            name=p["name"],
            deadline=p["deadline"],
            parts=tuple(
                Part(part_id=part_id, project_id=project_id, name=part["name"], steps=tuple(part["steps"]))
                for part_id, part in p["parts"].items()
            ),
        )
        for project_id, p in projects.items()
    ]


def schedule_to_frame(result: ScheduleResult) -> pd.DataFrame:
    rows = [
        {
            "task_id": t.task_id,
            "project_id": t.project_id,
            "project_name": t.project_name,
            "part_id": t.part_id,
            "part_name": t.part_name,
            "resource_id": t.resource_id,
            "resource_name": t.resource_name,
            "start_time": t.start_time,
            "end_time": t.end_time,
            "duration": t.duration,
            "description": t.description,
            "outsourced": t.is_outsourced,
            "completed": t.completed,
            "completed_at": t.completed_at,
        }
        for t in result.tasks
    ]
    df = pd.DataFrame(rows, columns=SCHEDULE_COLUMNS)
    if not df.empty:
        df = df.sort_values(["start_time", "resource_id", "task_id"], kind="stable").reset_index(drop=True)
    return df


def write_schedule_excel(result: ScheduleResult) -> bytes:
    bio = io.BytesIO()
    with pd.ExcelWriter(bio, engine="openpyxl") as writer:
        schedule_to_frame(result).to_excel(writer, sheet_name=SCHEDULE_SHEET, index=False)
    bio.seek(0)
    return bio.read()
