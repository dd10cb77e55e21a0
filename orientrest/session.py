"""Session state and its connect/disconnect transitions."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from .errors import ConnectionError


@dataclass(frozen=True, slots=True)
class SessionState:
    """Snapshot of the active session; every field is ``None`` when disconnected."""

    connected: bool = False
    database: str | None = None
    user: str | None = None
    password: str | None = None
    server_version: str | None = None


DISCONNECTED = SessionState()


class Session:
    """Single session per client, swapped atomically on connect/disconnect."""

    def __init__(self) -> None:
        self._state = DISCONNECTED
        self._lock = threading.RLock()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state.connected

    @contextmanager
    def transition(self) -> Iterator[SessionState]:
        """Serialise a connect/disconnect; yields the state it started from."""

        with self._lock:
            yield self._state

    def establish(self, database: str, user: str, password: str, server_version: str) -> SessionState:
        self._state = SessionState(
            connected=True,
            database=database,
            user=user,
            password=password,
            server_version=server_version,
        )
        return self._state

    def reset(self) -> None:
        self._state = DISCONNECTED

    def require_connected(self) -> SessionState:
        """Current state, or ConnectionError when no session is open."""

        state = self._state
        if not state.connected:
            raise ConnectionError("not connected")
        return state

    def credentials(self) -> tuple[str | None, str | None]:
        state = self._state
        return state.user, state.password


__all__ = ["DISCONNECTED", "Session", "SessionState"]
