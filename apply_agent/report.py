"""Batch reporting: CSV artifacts, history mirror, backend upload and email."""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

import requests

from apply_agent import tracker
from apply_agent.config import REPORTS_DIR
from apply_agent.email_report import send_report_email
from apply_agent.log import get_logger
from apply_agent.models import ApplicationRecord, BatchResult

log = get_logger(__name__)

# Skip reasons worth keeping in the history next to successful applications.
MIRRORED_REASONS = (
    "Company website redirect",
    "Apply failed: Application did not complete successfully",
)


class Reporter(ABC):
    @abstractmethod
    def record_applied(self, record: ApplicationRecord) -> None:
        ...

    @abstractmethod
    def record_skipped(self, records: list[ApplicationRecord]) -> None:
        ...

    @abstractmethod
    def send_report(self, batch: BatchResult, *, escalate: bool = False) -> None:
        ...


def history_entries(batch: BatchResult) -> list[dict]:
    entries = [r.to_dict() for r in batch.applied]
    entries += [
        r.to_dict() for r in batch.skipped
        if any(reason in r.reason for reason in MIRRORED_REASONS)
    ]
    return entries


def _pct(value: float | None) -> str:
    return f"{value:.2f}%" if value is not None else "N/A"


def _cell(text: str) -> str:
    return text.replace("|", "/").replace("\n", " ")


def build_report(batch: BatchResult, *, title: str, experience: int) -> str:
    lines: list[str] = [f"# {title}", ""]

    lines.append(
        f"## Successfully Applied Jobs ({len(batch.applied)}) for ({experience} years of experience)"
    )
    lines.append("")
    if batch.applied:
        lines.append("| Title | Company | Location | Applied At | Match | Matched Skills | Status |")
        lines.append("|-------|---------|----------|------------|------:|----------------|--------|")
        for r in batch.applied:
            lines.append(
                f"| {_cell(r.job.title)} | {_cell(r.job.company)} | {_cell(r.job.location or 'N/A')} "
                f"| {r.applied_at} | {_pct(r.match_percentage)} "
                f"| {_cell(', '.join(r.matched_skills) or 'N/A')} | {r.status.value} |"
            )
    else:
        lines.append("No jobs applied in this run.")
    lines.append("")

    lines.append(f"## Skipped Jobs ({len(batch.skipped)})")
    lines.append("")
    if batch.skipped:
        lines.append("| Title | Company | Location | Reason | Link | Match | Matched Skills |")
        lines.append("|-------|---------|----------|--------|------|------:|----------------|")
        for r in batch.skipped:
            lines.append(
                f"| {_cell(r.job.title)} | {_cell(r.job.company)} | {_cell(r.job.location or 'N/A')} "
                f"| {_cell(r.reason or 'N/A')} | [Open]({r.job.link}) | {_pct(r.match_percentage)} "
                f"| {_cell(', '.join(r.matched_skills) or 'N/A')} |"
            )
    lines.append("")
    return "\n".join(lines)


def write_report(content: str, reports_dir: Path = REPORTS_DIR) -> Path:
    reports_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d_%H%M%S")
    path = reports_dir / f"applications_{stamp}.md"
    path.write_text(content, encoding="utf-8")
    log.info("Report written → %s", path)
    return path


class FileReporter(Reporter):
    """Default reporter: CSV files, JSON history, optional backend and email."""

    def __init__(
        self,
        *,
        recipient: str = "",
        escalation_recipients: list[str] | None = None,
        backend_url: str = "",
        title: str = "Job Application Report for All type.",
        experience: int = 3,
        reports_dir: Path = REPORTS_DIR,
        applied_csv: Path = tracker.APPLIED_CSV,
        skipped_csv: Path = tracker.SKIPPED_CSV,
        history_path: Path = tracker.HISTORY_PATH,
        send_email: Callable[..., tuple[bool, str]] = send_report_email,
        http: requests.Session | None = None,
    ) -> None:
        self.recipient = recipient
        self.escalation_recipients = list(escalation_recipients or [])
        self.backend_url = backend_url.rstrip("/")
        self.title = title
        self.experience = experience
        self.reports_dir = reports_dir
        self.applied_csv = applied_csv
        self.skipped_csv = skipped_csv
        self.history_path = history_path
        self.send_email = send_email
        self.http = http or requests.Session()

    def record_applied(self, record: ApplicationRecord) -> None:
        tracker.append_applied(record, self.applied_csv)

    def record_skipped(self, records: list[ApplicationRecord]) -> None:
        if not records:
            log.info("No failed jobs to save")
            return
        tracker.append_skipped(records, self.skipped_csv)

    def recipients(self, escalate: bool) -> list[str]:
        out = [self.recipient] if self.recipient else []
        if escalate:
            out += [r for r in self.escalation_recipients if r not in out]
        return out

    def _save_to_backend(self, entries: list[dict]) -> bool:
        if not self.backend_url:
            return False
        try:
            r = self.http.post(f"{self.backend_url}/api/jobs/save", json={"jobs": entries}, timeout=5)
            r.raise_for_status()
        except requests.RequestException as e:
            log.warning("Could not save jobs to backend (%s)", str(e)[:120])
            return False
        log.info("Saved %d jobs to backend", len(entries))
        return True

    def send_report(self, batch: BatchResult, *, escalate: bool = False) -> None:
        entries = history_entries(batch)
        if entries:
            try:
                tracker.merge_history(entries, path=self.history_path)
            except OSError as e:
                log.error("Error saving jobs history: %s", e)
            self._save_to_backend(entries)
        else:
            log.info("No jobs to save (no applied jobs or failed applications)")

        body = build_report(batch, title=self.title, experience=self.experience)
        write_report(body, self.reports_dir)

        to = self.recipients(escalate)
        if not to:
            log.info("EMAIL_RECIPIENT not set; report not emailed")
            return
        if escalate:
            log.info("Escalating report to %d recipient(s)", len(to))
        ok, msg = self.send_email(body, to, subject=self.title)
        if not ok:
            log.warning("Report email not sent: %s", msg)
