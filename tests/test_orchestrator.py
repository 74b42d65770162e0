"""Tests for the sequential apply loop."""
from __future__ import annotations

import threading

import pytest

from apply_agent.browser import Indicator
from apply_agent.errors import MatcherUnavailable, SessionUnavailable
from apply_agent.models import ApplyStatus, DailyCounter, JobPosting, ScoreResult, SessionToken
from apply_agent.orchestrator import LIMIT_REASON, STOPPED_REASON, ApplyOrchestrator
from apply_agent.scoring import JobMatcher, SkillMatchScorer
from apply_agent.session import Segment, SessionStore
from apply_agent.throttle import ApplicationThrottle, MemoryCounterStore

from conftest import TODAY, FakeInspector, RecordingReporter, make_job

TOKEN = SessionToken(cookies=({"name": "nauk_at", "value": "abc"},))


@pytest.fixture
def sessions(tmp_path) -> SessionStore:
    store = SessionStore(tmp_path)
    store.save(Segment.GENERAL, TOKEN)
    return store


def no_login():
    raise AssertionError("login must not be called")


def build(inspector, throttle, sessions, reporter=None, **kwargs) -> ApplyOrchestrator:
    sleeps: list[float] = []
    orch = ApplyOrchestrator(
        inspector,
        SkillMatchScorer(),
        throttle,
        reporter or RecordingReporter(),
        sessions,
        kwargs.pop("login", no_login),
        sleep=sleeps.append,
        **kwargs,
    )
    orch.sleeps = sleeps
    return orch


def test_applies_eligible_job(throttle, sessions) -> None:
    inspector = FakeInspector()
    reporter = RecordingReporter()
    batch = build(inspector, throttle, sessions, reporter).run([make_job(1)])

    assert batch.total_applied_jobs_count == 1
    record = batch.applied[0]
    assert record.status is ApplyStatus.APPLIED
    assert record.applied_at != "N/A"
    assert "React" in record.matched_skills
    assert reporter.applied == [record]
    assert inspector.restored == [TOKEN]
    assert inspector.closed is True
    assert throttle.get_count().successfully_applied == 1


def test_daily_ceiling_skips_everything_without_navigation(sessions) -> None:
    counter = DailyCounter(40, 40, TODAY.isoformat(), 0, TODAY.isoformat())
    throttle = ApplicationThrottle(MemoryCounterStore(counter), today=lambda: TODAY)
    inspector = FakeInspector()
    jobs = [make_job(n) for n in range(3)]

    batch = build(inspector, throttle, sessions, ceiling=40).run(jobs)

    assert batch.applied == []
    assert [r.job for r in batch.skipped] == jobs
    assert {r.reason for r in batch.skipped} == {LIMIT_REASON}
    assert inspector.navigations == []


def test_exhausted_budget_still_counts_run_and_records_skips(sessions) -> None:
    counter = DailyCounter(40, 40, TODAY.isoformat(), 0, TODAY.isoformat())
    throttle = ApplicationThrottle(MemoryCounterStore(counter), today=lambda: TODAY)
    inspector = FakeInspector()
    reporter = RecordingReporter()

    batch = build(inspector, throttle, sessions, reporter, ceiling=40).run([make_job(1)])

    assert throttle.get_escalation_counter() == 1
    assert reporter.skipped == batch.skipped
    assert reporter.skipped[0].reason == LIMIT_REASON
    assert reporter.reports == []
    assert inspector.navigations == []
    assert throttle.get_count().successfully_applied == 40


def test_budget_exhausted_mid_batch(sessions) -> None:
    counter = DailyCounter(39, 39, TODAY.isoformat(), 0, TODAY.isoformat())
    throttle = ApplicationThrottle(MemoryCounterStore(counter), today=lambda: TODAY)
    batch = build(FakeInspector(), throttle, sessions, ceiling=40).run([make_job(1), make_job(2)])

    assert len(batch.applied) == 1
    assert batch.skipped[0].reason == LIMIT_REASON
    assert throttle.get_count().successfully_applied == 40


def test_stored_session_means_no_login(throttle, sessions) -> None:
    build(FakeInspector(), throttle, sessions).run([make_job(1)])


def test_missing_session_and_failed_login_aborts(throttle, tmp_path) -> None:
    inspector = FakeInspector()

    def login():
        raise RuntimeError("captcha")

    orch = build(inspector, throttle, SessionStore(tmp_path / "empty"), login=login)
    with pytest.raises(SessionUnavailable):
        orch.run([make_job(1)])
    assert inspector.navigations == []
    assert inspector.closed is True


def test_navigation_failure_is_per_job(throttle, sessions) -> None:
    bad, good = make_job(1), make_job(2)
    inspector = FakeInspector(nav_fail={bad.link})
    batch = build(inspector, throttle, sessions).run([bad, good])

    assert batch.skipped[0].reason == "Navigation failed"
    assert batch.skipped[0].status is ApplyStatus.FAILED
    assert [r.job for r in batch.applied] == [good]


def test_already_applied(throttle, sessions) -> None:
    job = make_job(1)
    inspector = FakeInspector(indicators={job.link: {Indicator.ALREADY_APPLIED}})
    batch = build(inspector, throttle, sessions).run([job])
    assert batch.skipped[0].status is ApplyStatus.ALREADY_APPLIED
    assert inspector.clicks == []


def test_ineligible_job_carries_scorer_reason(throttle, sessions) -> None:
    job = make_job(1, company="Infosys Ltd")
    inspector = FakeInspector()
    batch = build(inspector, throttle, sessions).run([job])
    assert "infosys" in batch.skipped[0].reason
    assert inspector.navigations == [job.link]


@pytest.mark.parametrize(
    "indicators, reason",
    [
        ({Indicator.COMPANY_SITE_REDIRECT, Indicator.APPLY_BUTTON}, "Company website redirect"),
        (set(), "No apply button found"),
        ({Indicator.APPLY_BUTTON}, "Application confirmation not found - clicked successfully"),
    ],
)
def test_apply_skip_reasons(throttle, sessions, indicators, reason) -> None:
    job = make_job(1)
    inspector = FakeInspector(indicators={job.link: indicators})
    batch = build(inspector, throttle, sessions).run([job])
    assert batch.applied == []
    assert batch.skipped[0].reason == reason
    assert batch.skipped[0].match_percentage is not None


def test_unverified_click_with_button_still_visible_fails(throttle, sessions) -> None:
    inspector = FakeInspector(success=False)
    orch = build(inspector, throttle, sessions)
    batch = orch.run([make_job(1)])
    record = batch.skipped[0]
    assert record.status is ApplyStatus.FAILED
    assert record.reason == "Apply failed: Application did not complete successfully"
    assert orch.sleeps == [6.0]


def test_unclickable_button(throttle, sessions) -> None:
    batch = build(FakeInspector(click_ok=False), throttle, sessions).run([make_job(1)])
    assert batch.skipped[0].reason == "Apply failed: Button not clickable"


def test_job_exception_becomes_skip(throttle, sessions) -> None:
    bad, good = make_job(1), make_job(2)
    inspector = FakeInspector(raise_on={bad.link})
    batch = build(inspector, throttle, sessions).run([bad, good])
    assert batch.skipped[0].reason == "Error: page crashed"
    assert len(batch.applied) == 1


def test_stop_event_checked_between_jobs(throttle, sessions) -> None:
    stop = threading.Event()

    class StoppingReporter(RecordingReporter):
        def record_applied(self, record):
            super().record_applied(record)
            stop.set()

    reporter = StoppingReporter()
    inspector = FakeInspector()
    batch = build(inspector, throttle, sessions, reporter, stop_event=stop).run(
        [make_job(1), make_job(2), make_job(3)]
    )
    assert len(batch.applied) == 1
    assert [r.reason for r in batch.skipped] == [STOPPED_REASON, STOPPED_REASON]
    assert inspector.closed is True


def test_after_batch_counts_bumps_and_reports(throttle, sessions) -> None:
    reporter = RecordingReporter()
    job_ok, job_skip = make_job(1), make_job(2, company="Wipro")
    batch = build(FakeInspector(), throttle, sessions, reporter).run([job_ok, job_skip])

    assert throttle.get_count().successfully_applied == 1
    assert throttle.get_escalation_counter() == 1
    assert [r.job for r in reporter.skipped] == [job_skip]
    assert reporter.reports == [(batch, False)]


def test_third_run_escalates(throttle, sessions) -> None:
    reporter = RecordingReporter()
    for n in range(3):
        build(FakeInspector(), throttle, sessions, reporter).run([make_job(n)])
    assert [esc for _, esc in reporter.reports] == [False, False, True]


def test_dry_run_does_not_send_report(throttle, sessions) -> None:
    reporter = RecordingReporter()
    build(FakeInspector(), throttle, sessions, reporter, dry_run=True).run([make_job(1)])
    assert reporter.reports == []
    assert throttle.get_count().successfully_applied == 1


def test_reporter_failure_does_not_abort(throttle, sessions) -> None:
    batch = build(FakeInspector(), throttle, sessions, RecordingReporter(fail=True)).run([make_job(1)])
    assert batch.total_applied_jobs_count == 1


class StubMatcher(JobMatcher):
    def __init__(self, result: ScoreResult | None = None) -> None:
        self.result = result
        self.calls: list[JobPosting] = []

    def analyze(self, job: JobPosting) -> ScoreResult:
        self.calls.append(job)
        if self.result is None:
            raise MatcherUnavailable("quota exceeded")
        return self.result


def test_ai_path_rejects_low_match(throttle, sessions) -> None:
    matcher = StubMatcher(ScoreResult(42.0, False, reason="Low match score: 42.00%"))
    batch = build(FakeInspector(), throttle, sessions, matcher=matcher).run([make_job(1)])
    assert batch.skipped[0].reason == "Low match score: 42.00%"
    assert batch.skipped[0].match_percentage == 42.0


def test_ai_path_falls_back_to_rules(throttle, sessions) -> None:
    matcher = StubMatcher(None)
    orch = build(FakeInspector(), throttle, sessions, matcher=matcher, inter_apply_delay=5.0)
    batch = orch.run([make_job(1)])
    assert len(matcher.calls) == 1
    assert batch.total_applied_jobs_count == 1
    assert orch.sleeps == [6.0, 5.0, 5.0]


def test_ai_not_consulted_when_rules_reject(throttle, sessions) -> None:
    matcher = StubMatcher(ScoreResult(99.0, True))
    build(FakeInspector(), throttle, sessions, matcher=matcher).run([make_job(1, company="HCL Tech")])
    assert matcher.calls == []
