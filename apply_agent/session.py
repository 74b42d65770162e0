"""Persisted portal login sessions, one file per profile segment."""
from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Callable

from apply_agent.errors import SessionUnavailable
from apply_agent.log import get_logger
from apply_agent.models import SessionToken
from apply_agent.storage import locked, read_json, write_json_atomic

log = get_logger(__name__)


class Segment(str, Enum):
    GENERAL = "general"
    MNC = "mnc"

    @property
    def filename(self) -> str:
        return "naukrisession.json" if self is Segment.GENERAL else "naukrisession_mnc.json"


LoginFn = Callable[[], "SessionToken | None"]


class SessionStore:
    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def path_for(self, segment: Segment) -> Path:
        return self.directory / segment.filename

    def load(self, segment: Segment) -> SessionToken | None:
        path = self.path_for(segment)
        try:
            with locked(path, exclusive=False):
                data = read_json(path)
        except (OSError, json.JSONDecodeError) as exc:
            log.warning("Ignoring unreadable session file %s: %s", path, exc)
            return None
        if not isinstance(data, dict) or not data.get("cookies"):
            return None
        return SessionToken.from_json(data)

    def save(self, segment: Segment, token: SessionToken) -> None:
        path = self.path_for(segment)
        with locked(path):
            write_json_atomic(path, token.to_json())
        log.info("Session saved for %s segment", segment.value)

    def clear(self, segment: Segment) -> None:
        path = self.path_for(segment)
        with locked(path):
            path.unlink(missing_ok=True)

    def ensure(self, segment: Segment, login: LoginFn) -> SessionToken:
        """Return the stored session, logging in (once) if none exists."""
        token = self.load(segment)
        if token is not None:
            log.info("Loaded existing %s session", segment.value)
            return token

        log.info("No %s session found. Logging in...", segment.value)
        try:
            token = login()
        except Exception as exc:
            raise SessionUnavailable(f"Login failed for {segment.value} segment: {exc}") from exc
        if token is None or not token.cookies:
            raise SessionUnavailable(f"Login returned no session for {segment.value} segment")
        self.save(segment, token)
        return token
