"""Sequential apply loop: navigate, gate, score, submit, verify, record."""
from __future__ import annotations

import threading
import time
from datetime import datetime, timezone
from typing import Callable, Iterable

from apply_agent.browser import Indicator, PageInspector
from apply_agent.config import BASELINE_DAILY_CEILING
from apply_agent.errors import MatcherUnavailable
from apply_agent.log import get_logger
from apply_agent.models import (
    ApplicationRecord,
    ApplyOutcome,
    ApplyStatus,
    BatchResult,
    JobPosting,
    ScoreResult,
)
from apply_agent.report import Reporter
from apply_agent.scoring.ai import JobMatcher
from apply_agent.scoring.pipeline import SkillMatchScorer
from apply_agent.session import LoginFn, Segment, SessionStore
from apply_agent.throttle import ApplicationThrottle

log = get_logger(__name__)

LIMIT_REASON = "Daily application limit reached"
STOPPED_REASON = "Run stopped before processing"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class ApplyOrchestrator:
    def __init__(
        self,
        inspector: PageInspector,
        scorer: SkillMatchScorer,
        throttle: ApplicationThrottle,
        reporter: Reporter,
        sessions: SessionStore,
        login: LoginFn,
        *,
        segment: Segment = Segment.GENERAL,
        ceiling: int = BASELINE_DAILY_CEILING,
        settle_delay: float = 6.0,
        confirm_delay: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
        matcher: JobMatcher | None = None,
        inter_apply_delay: float = 5.0,
        stop_event: threading.Event | None = None,
        dry_run: bool = False,
        owns_inspector: bool = True,
    ) -> None:
        self.inspector = inspector
        self.scorer = scorer
        self.throttle = throttle
        self.reporter = reporter
        self.sessions = sessions
        self.login = login
        self.segment = segment
        self.ceiling = ceiling
        self.settle_delay = settle_delay
        self.confirm_delay = confirm_delay
        self.sleep = sleep
        self.matcher = matcher
        self.inter_apply_delay = inter_apply_delay
        self.stop_event = stop_event or threading.Event()
        self.dry_run = dry_run
        self.owns_inspector = owns_inspector

    def run(self, jobs: Iterable[JobPosting]) -> BatchResult:
        jobs = list(jobs)
        result = BatchResult()
        try:
            budget = self.throttle.remaining(self.ceiling)
            if budget <= 0:
                log.info("Reached maximum job application limit of %d", self.ceiling)
                result.skipped = self._leftover(jobs, LIMIT_REASON)
                self.throttle.bump_escalation_counter()
                self._notify(self.reporter.record_skipped, result.skipped)
                return result

            token = self.sessions.ensure(self.segment, self.login)
            self.inspector.restore_session(token)

            for idx, job in enumerate(jobs):
                if self.stop_event.is_set():
                    log.warning("Stop requested; %d job(s) left unprocessed", len(jobs) - idx)
                    result.skipped += self._leftover(jobs[idx:], STOPPED_REASON)
                    break
                if len(result.applied) >= budget:
                    log.info("Reached maximum job applications limit of %d", budget)
                    result.skipped += self._leftover(jobs[idx:], LIMIT_REASON)
                    break

                log.info("Processing %d out of %d: %s at %s", idx + 1, len(jobs), job.title, job.company)
                record = self._process(job)
                if record.status is ApplyStatus.APPLIED:
                    result.applied.append(record)
                    self._notify(self.reporter.record_applied, record)
                else:
                    log.info("Skipped %s: %s", job.title, record.reason)
                    result.skipped.append(record)

            self._finish(result)
            return result
        finally:
            if self.owns_inspector:
                self.inspector.close()

    def close(self) -> None:
        self.inspector.close()

    @staticmethod
    def _leftover(jobs: list[JobPosting], reason: str) -> list[ApplicationRecord]:
        return [ApplicationRecord(job, ApplyStatus.SKIPPED, reason) for job in jobs]

    def _process(self, job: JobPosting) -> ApplicationRecord:
        score: ScoreResult | None = None
        try:
            if not self.inspector.navigate(job.link):
                return ApplicationRecord(job, ApplyStatus.FAILED, "Navigation failed")

            if self.inspector.has_indicator(Indicator.ALREADY_APPLIED):
                log.info("Already applied to this job")
                return ApplicationRecord(job, ApplyStatus.ALREADY_APPLIED, "Already applied")

            score = self._evaluate(self.inspector.extract_posting(job))
            if not score.is_eligible:
                return self._record(job, ApplyStatus.SKIPPED, score.reason or "not eligible", score)

            outcome = self._submit(job)
            if self.matcher is not None:
                self.sleep(self.inter_apply_delay)
            if outcome.success:
                log.info("Successfully applied to %s at %s", job.title, job.company)
                record = self._record(job, ApplyStatus.APPLIED, "", score)
                record.applied_at = _now()
                return record
            return self._record(job, outcome.status, outcome.reason, score)
        except Exception as e:
            log.exception("Error processing job %s", job.title)
            return self._record(job, ApplyStatus.SKIPPED, f"Error: {e}", score)

    @staticmethod
    def _record(
        job: JobPosting, status: ApplyStatus, reason: str, score: ScoreResult | None
    ) -> ApplicationRecord:
        if score is None:
            return ApplicationRecord(job, status, reason)
        return ApplicationRecord(
            job,
            status,
            reason,
            match_percentage=score.match_percentage,
            matched_skills=list(score.matched_skills),
        )

    def _evaluate(self, posting: JobPosting) -> ScoreResult:
        result = self.scorer.score(posting)
        if not result.is_eligible or self.matcher is None:
            return result
        try:
            return self.matcher.analyze(posting)
        except MatcherUnavailable as exc:
            log.warning("AI matching failed: %s. Using rule-based skill matching.", exc)
            return result

    def _submit(self, job: JobPosting) -> ApplyOutcome:
        inspector = self.inspector
        if not inspector.navigate(job.link):
            return ApplyOutcome(False, "Navigation failed", ApplyStatus.FAILED)
        if inspector.has_indicator(Indicator.COMPANY_SITE_REDIRECT):
            return ApplyOutcome(False, "Company website redirect")
        if not inspector.has_indicator(Indicator.APPLY_BUTTON):
            return ApplyOutcome(False, "No apply button found")
        if not inspector.click(Indicator.APPLY_BUTTON):
            return ApplyOutcome(False, "Apply failed: Button not clickable", ApplyStatus.FAILED)

        self.sleep(self.settle_delay)
        if not inspector.success_markers() and inspector.has_indicator(Indicator.APPLY_BUTTON):
            return ApplyOutcome(
                False, "Apply failed: Application did not complete successfully", ApplyStatus.FAILED
            )

        self.sleep(self.confirm_delay)
        if inspector.has_indicator(Indicator.CONFIRMATION):
            return ApplyOutcome(True, status=ApplyStatus.APPLIED)
        return ApplyOutcome(False, "Application confirmation not found - clicked successfully")

    def _finish(self, result: BatchResult) -> None:
        self.throttle.update(len(result.applied))
        self.throttle.bump_escalation_counter()
        self._notify(self.reporter.record_skipped, result.skipped)

        if self.dry_run:
            log.info("Dry run: report not sent (%d applied, %d skipped)",
                     len(result.applied), len(result.skipped))
            return
        if result.applied or result.skipped:
            self._notify(self.reporter.send_report, result, escalate=self.throttle.should_escalate())

    @staticmethod
    def _notify(fn, *args, **kwargs) -> None:
        try:
            fn(*args, **kwargs)
        except Exception:
            log.exception("Reporter call %s failed", getattr(fn, "__name__", fn))
