"""
Auto-apply agent.

Runs: load jobs → restore/refresh portal session → score each posting → apply → count → report.
"""
from __future__ import annotations

import signal
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from apply_agent.browser import PlaywrightInspector, login_to_portal, open_browser
from apply_agent.config import (
    COUNTER_PATH,
    SESSION_DIR,
    RunConfig,
    ensure_dirs,
    get_env,
    get_env_list,
    load_jobs,
)
from apply_agent.errors import MatcherUnavailable
from apply_agent.log import get_logger
from apply_agent.orchestrator import ApplyOrchestrator
from apply_agent.report import FileReporter
from apply_agent.scoring import JobMatcher, OpenAIJobMatcher, SkillMatchScorer, load_resume_text
from apply_agent.session import Segment, SessionStore
from apply_agent.throttle import ApplicationThrottle, JsonCounterStore

log = get_logger(__name__)


def build_throttle() -> ApplicationThrottle:
    return ApplicationThrottle(JsonCounterStore(COUNTER_PATH))


def build_matcher(config: RunConfig) -> JobMatcher | None:
    """AI matcher for the alternate path, or None to stay rule-based."""
    if not config.use_ai:
        return None
    if not config.resume:
        log.warning("useAi is set but no resume path is configured; using rule-based scoring")
        return None
    try:
        resume_text = load_resume_text(Path(config.resume))
        return OpenAIJobMatcher(
            resume_text,
            get_env("OPENAI_API_KEY"),
            min_match_percentage=config.match_threshold,
        )
    except (OSError, ValueError, MatcherUnavailable) as e:
        log.warning("AI matcher unavailable (%s); using rule-based scoring", e)
        return None


def build_reporter(config: RunConfig) -> FileReporter:
    title = f"Job Application Report {'for MNCs jobs' if config.scrape_mnc else 'for All type'}."
    return FileReporter(
        recipient=get_env("EMAIL_RECIPIENT"),
        escalation_recipients=get_env_list("ESCALATION_RECIPIENTS"),
        backend_url=get_env("BACKEND_URL", "http://localhost:3001"),
        title=title,
        experience=config.experience,
    )


@contextmanager
def stop_on_signals(stop: threading.Event) -> Iterator[None]:
    """Set ``stop`` on SIGINT/SIGTERM; the batch halts before the next job."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handler(signum, _frame):
        log.warning("Received %s, stopping after the current job", signal.Signals(signum).name)
        stop.set()

    previous = {s: signal.signal(s, _handler) for s in (signal.SIGINT, signal.SIGTERM)}
    try:
        yield
    finally:
        for s, h in previous.items():
            signal.signal(s, h)


def run(config: RunConfig) -> dict[str, Any]:
    ensure_dirs()
    throttle = build_throttle()

    if config.reset:
        counter = throttle.reset()
        log.info("Counter reset (applied till now: %d)", counter.successfully_applied_till_now)

    jobs = load_jobs(config.jobs_path)
    if not config.auto_apply or not jobs:
        log.info("Nothing to apply (autoApply=%s, jobs=%d)", config.auto_apply, len(jobs))
        return {"applied": [], "skipped": [], "totalAppliedJobsCount": 0}

    segment = Segment.MNC if config.scrape_mnc else Segment.GENERAL
    sessions = SessionStore(SESSION_DIR)
    username = get_env("NAUKRI_USERNAME")
    password = get_env("NAUKRI_PASSWORD")
    headless = get_env("RUN_HEADLESS", "true").lower() in ("1", "true", "yes")
    matcher = build_matcher(config)
    stop = threading.Event()

    with stop_on_signals(stop), open_browser(headless=headless) as page:
        orchestrator = ApplyOrchestrator(
            PlaywrightInspector(page),
            SkillMatchScorer(),
            throttle,
            build_reporter(config),
            sessions,
            lambda: login_to_portal(page, username, password),
            segment=segment,
            ceiling=config.daily_ceiling,
            matcher=matcher,
            stop_event=stop,
            dry_run=config.dry_run,
        )
        batch = orchestrator.run(jobs)

    log.info(
        "Run complete: applied=%d, skipped=%d",
        batch.total_applied_jobs_count, len(batch.skipped),
    )
    return {
        "applied": [r.to_dict() for r in batch.applied],
        "skipped": [r.to_dict() for r in batch.skipped],
        "totalAppliedJobsCount": batch.total_applied_jobs_count,
    }
