"""Tests for the daily application counter and escalation counter."""
from __future__ import annotations

import json
from datetime import date, timedelta

import pytest

from apply_agent.errors import PersistenceError
from apply_agent.models import DailyCounter
from apply_agent.throttle import ApplicationThrottle, JsonCounterStore, MemoryCounterStore

from conftest import TODAY


class Clock:
    def __init__(self, day: date) -> None:
        self.day = day

    def __call__(self) -> date:
        return self.day


def make_throttle(counter: DailyCounter | None = None, day: date = TODAY):
    clock = Clock(day)
    return ApplicationThrottle(MemoryCounterStore(counter), today=clock), clock


def test_update_accumulates_within_a_day() -> None:
    throttle, _ = make_throttle()
    throttle.update(3)
    counter = throttle.update(2)
    assert counter.successfully_applied == 5
    assert counter.successfully_applied_till_now == 5
    assert counter.last_reset_date == TODAY.isoformat()


def test_update_zero_same_day_is_noop() -> None:
    start = DailyCounter(7, 100, TODAY.isoformat(), 1, TODAY.isoformat())
    throttle, _ = make_throttle(start)
    counter = throttle.update(0)
    assert counter.successfully_applied == 7
    assert counter.successfully_applied_till_now == 100


def test_update_zero_on_new_day_resets_only_today() -> None:
    yesterday = (TODAY - timedelta(days=1)).isoformat()
    throttle, _ = make_throttle(DailyCounter(7, 100, yesterday, 1, yesterday))
    counter = throttle.update(0)
    assert counter.successfully_applied == 0
    assert counter.successfully_applied_till_now == 100
    assert counter.last_reset_date == TODAY.isoformat()


def test_remaining_ignores_stale_count_from_yesterday() -> None:
    yesterday = (TODAY - timedelta(days=1)).isoformat()
    throttle, _ = make_throttle(DailyCounter(40, 40, yesterday, 0, yesterday))
    assert throttle.remaining(40) == 40


def test_remaining_at_ceiling() -> None:
    throttle, _ = make_throttle(DailyCounter(40, 90, TODAY.isoformat(), 0, TODAY.isoformat()))
    assert throttle.remaining(40) == 0
    assert throttle.remaining(50) == 10


def test_reset_keeps_lifetime_counter() -> None:
    throttle, _ = make_throttle(DailyCounter(12, 300, "2026-01-01", 2, TODAY.isoformat()))
    counter = throttle.reset()
    assert counter.successfully_applied == 0
    assert counter.successfully_applied_till_now == 300
    assert counter.last_reset_date == TODAY.isoformat()
    assert counter.should_send_email_counter == 2


def test_escalation_fires_on_third_run_of_day() -> None:
    throttle, _ = make_throttle()
    fired = []
    for _ in range(4):
        throttle.bump_escalation_counter()
        fired.append(throttle.should_escalate())
    assert fired == [False, False, True, False]
    assert throttle.get_escalation_counter() == 4


def test_escalation_counter_resets_on_new_day() -> None:
    throttle, clock = make_throttle()
    for _ in range(2):
        throttle.bump_escalation_counter()
    clock.day = TODAY + timedelta(days=1)
    assert throttle.should_escalate() is False
    assert throttle.bump_escalation_counter() == 1


def test_json_store_round_trips_camel_case(tmp_path) -> None:
    path = tmp_path / "job_application_tracker.json"
    throttle = ApplicationThrottle(JsonCounterStore(path), today=lambda: TODAY)
    throttle.update(4)
    throttle.bump_escalation_counter()

    data = json.loads(path.read_text())
    assert data == {
        "successfullyApplied": 4,
        "successfullyAppliedTillNow": 4,
        "lastResetDate": TODAY.isoformat(),
        "shouldSendEmailCounter": 1,
        "lastCounterResetDate": TODAY.isoformat(),
    }
    again = ApplicationThrottle(JsonCounterStore(path), today=lambda: TODAY)
    assert again.get_count().successfully_applied == 4
    assert list(tmp_path.glob(".job_application_tracker.json.*")) == []


def test_json_store_missing_file_defaults(tmp_path) -> None:
    throttle = ApplicationThrottle(JsonCounterStore(tmp_path / "nope.json"), today=lambda: TODAY)
    counter = throttle.get_count()
    assert counter.successfully_applied == 0
    assert counter.last_reset_date == TODAY.isoformat()


def test_json_store_corrupt_file_raises(tmp_path) -> None:
    path = tmp_path / "counter.json"
    path.write_text("{not json")
    throttle = ApplicationThrottle(JsonCounterStore(path), today=lambda: TODAY)
    with pytest.raises(PersistenceError):
        throttle.update(1)
    assert path.read_text() == "{not json"
