"""Decorators wrapped around session-bound client operations."""

from __future__ import annotations

import functools
import logging
import time
from typing import Any, Callable, TypeVar

LOG = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def requires_connection(func: F) -> F:
    """Fail fast with ConnectionError unless the client's session is open."""

    @functools.wraps(func)
    def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
        self._session.require_connected()
        return func(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


def timed(func: F) -> F:
    """Log the wall-clock duration of every call."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        started = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            LOG.debug(
                "%s took %.1f ms",
                func.__name__,
                elapsed_ms,
                extra={"operation": func.__name__, "elapsed_ms": elapsed_ms},
            )

    return wrapper  # type: ignore[return-value]


__all__ = ["requires_connection", "timed"]
