"""Shared fakes for orchestrator and reporter tests."""
from __future__ import annotations

from datetime import date

import pytest

from apply_agent.browser import Indicator, PageInspector
from apply_agent.models import ApplicationRecord, BatchResult, DailyCounter, JobPosting, SessionToken
from apply_agent.report import Reporter
from apply_agent.throttle import ApplicationThrottle, MemoryCounterStore

TODAY = date(2026, 3, 14)

ACME_DESCRIPTION = "react redux node.js express mongodb docker ci/cd"
ACME_CHIPS = ("React", "Node.js", "Express.js", "MongoDB")


def make_job(n: int = 1, **overrides) -> JobPosting:
    fields = dict(
        link=f"https://www.naukri.com/job-listings-{n}",
        title="Fullstack Developer",
        company=f"Acme {n}",
        location="Bengaluru",
        description=ACME_DESCRIPTION,
        skill_chips=ACME_CHIPS,
        applicants_count=120,
    )
    fields.update(overrides)
    return JobPosting(**fields)


class FakeInspector(PageInspector):
    """Scripted page: per-link indicator sets and a call log."""

    def __init__(
        self,
        *,
        indicators: dict[str, set[Indicator]] | None = None,
        default: set[Indicator] | None = None,
        nav_fail: set[str] | None = None,
        click_ok: bool = True,
        success: bool = True,
        raise_on: set[str] | None = None,
    ) -> None:
        self.indicators = indicators or {}
        self.default = (
            default if default is not None else {Indicator.APPLY_BUTTON, Indicator.CONFIRMATION}
        )
        self.nav_fail = nav_fail or set()
        self.click_ok = click_ok
        self.success = success
        self.raise_on = raise_on or set()
        self.current: str | None = None
        self.navigations: list[str] = []
        self.clicks: list[str] = []
        self.restored: list[SessionToken] = []
        self.closed = False

    def navigate(self, url: str) -> bool:
        self.navigations.append(url)
        self.current = url
        return url not in self.nav_fail

    def _active(self) -> set[Indicator]:
        active = set(self.indicators.get(self.current, self.default))
        if self.current in self.clicks and self.success:
            active.discard(Indicator.APPLY_BUTTON)
        return active

    def has_indicator(self, indicator: Indicator) -> bool:
        if self.current in self.raise_on:
            raise RuntimeError("page crashed")
        return indicator in self._active()

    def extract_posting(self, job: JobPosting) -> JobPosting:
        return job

    def click(self, control: Indicator) -> bool:
        self.clicks.append(self.current)
        return self.click_ok

    def success_markers(self) -> bool:
        return self.success

    def restore_session(self, token: SessionToken) -> None:
        self.restored.append(token)

    def close(self) -> None:
        self.closed = True


class RecordingReporter(Reporter):
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.applied: list[ApplicationRecord] = []
        self.skipped: list[ApplicationRecord] = []
        self.reports: list[tuple[BatchResult, bool]] = []

    def record_applied(self, record: ApplicationRecord) -> None:
        self.applied.append(record)

    def record_skipped(self, records: list[ApplicationRecord]) -> None:
        self.skipped.extend(records)

    def send_report(self, batch: BatchResult, *, escalate: bool = False) -> None:
        if self.fail:
            raise RuntimeError("SMTP down")
        self.reports.append((batch, escalate))


@pytest.fixture
def throttle() -> ApplicationThrottle:
    return ApplicationThrottle(MemoryCounterStore(DailyCounter.fresh(TODAY)), today=lambda: TODAY)
