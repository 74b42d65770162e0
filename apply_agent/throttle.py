"""Daily application counters and the report escalation counter."""
from __future__ import annotations

import json
from abc import ABC, abstractmethod
from datetime import date
from pathlib import Path
from typing import Callable

from apply_agent.errors import PersistenceError
from apply_agent.log import get_logger
from apply_agent.models import DailyCounter
from apply_agent.storage import locked, read_json, write_json_atomic

log = get_logger(__name__)

ESCALATION_EVERY = 3

Mutator = Callable[[DailyCounter], None]


class CounterStore(ABC):
    """Storage backend for the single DailyCounter record."""

    @abstractmethod
    def load(self, today: date) -> DailyCounter | None:
        """Return the stored counter, or None if nothing has been persisted."""

    @abstractmethod
    def modify(self, today: date, mutate: Mutator) -> DailyCounter:
        """Read, mutate and persist the counter as one atomic step."""


class MemoryCounterStore(CounterStore):
    def __init__(self, counter: DailyCounter | None = None) -> None:
        self.counter = counter

    def load(self, today: date) -> DailyCounter | None:
        return self.counter

    def modify(self, today: date, mutate: Mutator) -> DailyCounter:
        counter = self.counter or DailyCounter.fresh(today)
        mutate(counter)
        self.counter = counter
        return counter


class JsonCounterStore(CounterStore):
    """JSON file guarded by an fcntl lock; writes go through an atomic rename."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def _read(self, today: date) -> DailyCounter | None:
        try:
            data = read_json(self.path)
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceError(f"Cannot read counter file {self.path}: {exc}") from exc
        if data is None:
            return None
        return DailyCounter.from_json(data, today)

    def load(self, today: date) -> DailyCounter | None:
        with locked(self.path, exclusive=False):
            return self._read(today)

    def modify(self, today: date, mutate: Mutator) -> DailyCounter:
        with locked(self.path):
            counter = self._read(today) or DailyCounter.fresh(today)
            mutate(counter)
            try:
                write_json_atomic(self.path, counter.to_json())
            except OSError as exc:
                raise PersistenceError(f"Cannot write counter file {self.path}: {exc}") from exc
        return counter


class ApplicationThrottle:
    """Per-day and lifetime application counts plus the per-day run counter."""

    def __init__(self, store: CounterStore, today: Callable[[], date] = date.today) -> None:
        self.store = store
        self._today = today

    def get_count(self) -> DailyCounter:
        today = self._today()
        return self.store.load(today) or DailyCounter.fresh(today)

    def applied_today(self) -> int:
        counter = self.get_count()
        if counter.last_reset_date != self._today().isoformat():
            return 0
        return counter.successfully_applied

    def remaining(self, ceiling: int) -> int:
        return ceiling - self.applied_today()

    def update(self, delta: int) -> DailyCounter:
        today = self._today().isoformat()

        def apply(counter: DailyCounter) -> None:
            if counter.last_reset_date != today:
                log.info("New day detected. Resetting today's application count.")
                counter.successfully_applied = 0
                counter.last_reset_date = today
            counter.successfully_applied += delta
            counter.successfully_applied_till_now += delta

        counter = self.store.modify(self._today(), apply)
        log.info(
            "Applied today: %d | applied till now: %d",
            counter.successfully_applied, counter.successfully_applied_till_now,
        )
        return counter

    def get_escalation_counter(self) -> int:
        return self.get_count().should_send_email_counter

    def bump_escalation_counter(self) -> int:
        today = self._today().isoformat()

        def apply(counter: DailyCounter) -> None:
            if counter.last_counter_reset_date != today:
                counter.should_send_email_counter = 0
                counter.last_counter_reset_date = today
            counter.should_send_email_counter += 1

        counter = self.store.modify(self._today(), apply)
        log.debug("Run counter for today: %d", counter.should_send_email_counter)
        return counter.should_send_email_counter

    def should_escalate(self) -> bool:
        """True on every third run of the day."""
        counter = self.get_count()
        if counter.last_counter_reset_date != self._today().isoformat():
            return False
        n = counter.should_send_email_counter
        return n > 0 and n % ESCALATION_EVERY == 0

    def reset(self) -> DailyCounter:
        """Zero today's count; the lifetime counter is left alone."""
        today = self._today().isoformat()

        def apply(counter: DailyCounter) -> None:
            counter.successfully_applied = 0
            counter.last_reset_date = today

        counter = self.store.modify(self._today(), apply)
        log.info("Daily application counter reset to 0")
        return counter
