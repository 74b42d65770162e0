"""CSV artifacts for applied/skipped jobs and the JSON history of reported jobs."""
from __future__ import annotations

import csv
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable

from apply_agent.config import DATA_DIR
from apply_agent.log import get_logger
from apply_agent.models import ApplicationRecord
from apply_agent.storage import locked, read_json, write_json_atomic

log = get_logger(__name__)

APPLIED_CSV: Path = DATA_DIR / "applied_jobs.csv"
SKIPPED_CSV: Path = DATA_DIR / "skipped_jobs.csv"
HISTORY_PATH: Path = DATA_DIR / "jobs_sent_over_email.json"
HISTORY_RETENTION = timedelta(hours=24)

HEADERS: list[str] = [
    "date", "title", "company", "location", "link",
    "status", "reason", "match_percentage", "matched_skills",
]


def _row(record: ApplicationRecord, when: str) -> dict[str, str]:
    pct = record.match_percentage
    return {
        "date": when,
        "title": record.job.title,
        "company": record.job.company,
        "location": record.job.location or "N/A",
        "link": record.job.link,
        "status": record.status.value,
        "reason": record.reason or "N/A",
        "match_percentage": f"{pct:.2f}" if pct is not None else "NA",
        "matched_skills": ", ".join(record.matched_skills),
    }


def _read_rows(path: Path) -> list[dict[str, str]]:
    if not path.exists():
        return []
    with open(path, "r", newline="", encoding="utf-8") as f:
        return list(csv.DictReader(f))


def _append_rows(path: Path, rows: list[dict[str, str]]) -> None:
    new_file = not path.exists()
    with open(path, "a", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=HEADERS)
        if new_file:
            w.writeheader()
        w.writerows(rows)


def append_applied(record: ApplicationRecord, path: Path = APPLIED_CSV) -> None:
    with locked(path):
        _append_rows(path, [_row(record, record.applied_at)])
    log.debug("Tracked applied: %s @ %s", record.job.title, record.job.company)


def append_skipped(records: Iterable[ApplicationRecord], path: Path = SKIPPED_CSV) -> int:
    """Append skipped jobs, ignoring ones already listed with the same link and title."""
    now = datetime.now(timezone.utc).isoformat(timespec="seconds")
    with locked(path):
        seen = {(r.get("link"), r.get("title")) for r in _read_rows(path)}
        rows = []
        for rec in records:
            key = (rec.job.link, rec.job.title)
            if key in seen:
                continue
            seen.add(key)
            rows.append(_row(rec, now))
        if rows:
            _append_rows(path, rows)
    log.info("Saved %d skipped job(s) to %s", len(rows), path.name)
    return len(rows)


def read_applied(path: Path = APPLIED_CSV) -> list[dict[str, str]]:
    with locked(path, exclusive=False):
        return _read_rows(path)


def _parse_ts(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        ts = datetime.fromisoformat(value)
    except ValueError:
        return None
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def merge_history(
    entries: list[dict],
    *,
    path: Path = HISTORY_PATH,
    now: datetime | None = None,
    retention: timedelta = HISTORY_RETENTION,
) -> list[dict]:
    """Merge ``entries`` into the history file keyed by link; drop stale ones."""
    now = now or datetime.now(timezone.utc)
    stamp = now.isoformat(timespec="seconds")
    with locked(path):
        try:
            existing = read_json(path) or []
        except (OSError, json.JSONDecodeError) as e:
            log.error("Error reading existing jobs file: %s", e)
            existing = []

        merged: dict[str, dict] = {}
        for entry in existing:
            ts = _parse_ts(entry.get("savedAt"))
            if ts is None or now - ts > retention:
                continue
            if entry.get("link"):
                merged[entry["link"]] = entry
        for entry in entries:
            if entry.get("link"):
                merged[entry["link"]] = {**entry, "savedAt": stamp}

        out = list(merged.values())
        write_json_atomic(path, out)
    log.info("Saved %d jobs to history (%d total)", len(entries), len(out))
    return out
