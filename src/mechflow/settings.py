from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from datetime import date
from pathlib import Path

from mechflow.data.coerce import coerce_date, coerce_float


@dataclass(frozen=True)
class Settings:
    hours_per_day: float = 8.0
    log_level: str = "INFO"
    # First day of the plan (T=0); None means "today" at the call site.
    plan_start: date | None = None
    output_dir: Path = Path("out")


def default_config_path() -> Path:
    return Path("config") / "mechflow.json"


def load_settings(path: Path | None = None, **overrides) -> Settings:
    """Read settings from a JSON file (optional) and apply non-None overrides.

    Unknown keys in the file are ignored.
    """
    values: dict = {}
    if path is not None and path.exists():
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        known = {f.name for f in fields(Settings)}
        values = {k: v for k, v in dict(raw).items() if k in known}

    values.update({k: v for k, v in overrides.items() if v is not None})

    settings = Settings()
    if "hours_per_day" in values:
        hpd = coerce_float(values["hours_per_day"], field="hours_per_day")
        if hpd <= 0:
            raise ValueError("hours_per_day must be > 0")
        settings = replace(settings, hours_per_day=hpd)
    if "log_level" in values:
        settings = replace(settings, log_level=str(values["log_level"]).upper())
    if "plan_start" in values:
        settings = replace(settings, plan_start=coerce_date(values["plan_start"], field="plan_start"))
    if "output_dir" in values:
        settings = replace(settings, output_dir=Path(values["output_dir"]))
    return settings
