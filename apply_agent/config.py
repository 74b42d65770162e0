"""Load run configuration, environment and the scraped jobs queue."""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from apply_agent.log import get_logger
from apply_agent.models import JobPosting

log = get_logger(__name__)

load_dotenv()

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = ROOT_DIR / "config"
RUN_CONFIG_PATH: Path = CONFIG_DIR / "run.yaml"
DATA_DIR: Path = Path(os.environ.get("APPLY_AGENT_DATA_DIR", ROOT_DIR / "data"))
REPORTS_DIR: Path = ROOT_DIR / "reports"
SESSION_DIR: Path = DATA_DIR / "sessions"
COUNTER_PATH: Path = DATA_DIR / "job_application_tracker.json"
JOBS_PATH: Path = DATA_DIR / "jobs.json"

BASELINE_DAILY_CEILING = 40
AI_DAILY_CEILING = 50

# Camel-case keys accepted in run.yaml, mapped onto RunConfig attributes
_RUN_KEYS: dict[str, str] = {
    "maxPages": "max_pages",
    "experience": "experience",
    "jobAge": "job_age",
    "autoApply": "auto_apply",
    "scrapeMNC": "scrape_mnc",
    "resume": "resume",
    "matchThreshold": "match_threshold",
    "reset": "reset",
    "useAi": "use_ai",
    "dryRun": "dry_run",
    "jobsFile": "jobs_file",
}


@dataclass
class RunConfig:
    max_pages: int = 1
    experience: int = 3
    job_age: int = 1
    auto_apply: bool = True
    scrape_mnc: bool = False
    resume: str | None = None
    match_threshold: int = 50
    reset: bool = False
    use_ai: bool = False
    dry_run: bool = False
    jobs_file: str | None = None

    @property
    def daily_ceiling(self) -> int:
        return AI_DAILY_CEILING if self.use_ai else BASELINE_DAILY_CEILING

    @property
    def jobs_path(self) -> Path:
        return Path(self.jobs_file) if self.jobs_file else JOBS_PATH


def parse_run_config(data: dict[str, Any] | None) -> RunConfig:
    data = data or {}
    known = {f.name for f in fields(RunConfig)}
    values: dict[str, Any] = {}
    for key, value in data.items():
        attr = _RUN_KEYS.get(key, key)
        if attr not in known:
            log.warning("Ignoring unknown run option %r", key)
            continue
        values[attr] = value
    return RunConfig(**values)


def load_run_config(path: Path | None = None) -> RunConfig:
    path = path or RUN_CONFIG_PATH
    if not path.exists():
        log.info("No run config at %s, using defaults", path)
        return RunConfig()
    with open(path, "r", encoding="utf-8") as f:
        return parse_run_config(yaml.safe_load(f))


def load_jobs(path: Path | None = None) -> list[JobPosting]:
    """Read the scraped jobs queue; malformed entries are logged and dropped."""
    path = path or JOBS_PATH
    if not path.exists():
        log.warning("Jobs file %s not found", path)
        return []
    raw = json.loads(path.read_text(encoding="utf-8"))
    jobs: list[JobPosting] = []
    seen: set[str] = set()
    for entry in raw:
        try:
            job = JobPosting.from_dict(entry)
        except (AttributeError, TypeError, ValueError) as exc:
            log.warning("Dropping malformed job entry: %s", exc)
            continue
        if job.link in seen:
            continue
        seen.add(job.link)
        jobs.append(job)
    log.info("Loaded %d job(s) from %s", len(jobs), path.name)
    return jobs


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def get_env_list(key: str) -> list[str]:
    return [v.strip() for v in get_env(key).split(",") if v.strip()]


def ensure_dirs() -> None:
    for d in (REPORTS_DIR, DATA_DIR, SESSION_DIR):
        d.mkdir(parents=True, exist_ok=True)
