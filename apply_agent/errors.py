"""Exceptions for conditions that cannot be expressed as a per-job skip."""
from __future__ import annotations


class AgentError(Exception):
    pass


class SessionUnavailable(AgentError):
    """No stored session and the interactive login failed; aborts the run."""


class RateLimited(AgentError):
    """The external matcher signalled HTTP 429."""


class MatcherUnavailable(AgentError):
    """The external matcher could not produce a result."""


class PersistenceError(AgentError):
    """Counter or session file could not be read or written."""
