"""Retry decorator with exponential backoff, stdlib only."""
from __future__ import annotations

import functools
import logging
import random
import time
from typing import Any, Callable, Tuple, Type

logger = logging.getLogger(__name__)


def backoff_delays(
    max_attempts: int, base_delay: float, backoff_factor: float, max_delay: float
) -> list[float]:
    """Sleep before each retry: base, base*f, base*f**2 ... capped at max_delay."""
    return [
        min(base_delay * (backoff_factor ** n), max_delay)
        for n in range(max_attempts - 1)
    ]


def retry(
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    backoff_factor: float = 2.0,
    jitter: bool = False,
    retryable: Tuple[Type[BaseException], ...] = (Exception,),
    giveup: Type[BaseException] | None = None,
) -> Callable:
    """Decorator: retries the wrapped function with exponential backoff.

    When every attempt fails the last exception is re-raised, or wrapped in
    ``giveup`` if one is given.
    """
    delays = backoff_delays(max_attempts, base_delay, backoff_factor, max_delay)

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(1, max_attempts + 1):
                try:
                    return fn(*args, **kwargs)
                except retryable as exc:
                    if attempt == max_attempts:
                        logger.error(
                            "%s failed after %d attempts: %s",
                            fn.__qualname__,
                            max_attempts,
                            exc,
                        )
                        if giveup is not None:
                            raise giveup(str(exc)) from exc
                        raise
                    delay = delays[attempt - 1]
                    if jitter:
                        delay *= 0.5 + random.random()
                    logger.warning(
                        "%s attempt %d/%d failed (%s), retrying in %.1fs",
                        fn.__qualname__,
                        attempt,
                        max_attempts,
                        exc,
                        delay,
                    )
                    time.sleep(delay)
            raise AssertionError("unreachable")

        return wrapper

    return decorator
