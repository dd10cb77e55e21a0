"""Load-balancing strategies picking the node for the next call."""

from __future__ import annotations

import threading
from typing import Protocol, runtime_checkable

from .errors import ArgumentError


@runtime_checkable
class LoadBalancer(Protocol):
    """Protocol implemented by load-balancing strategies."""

    size: int

    def select(self) -> int:
        """Index of the node to use for the next session-bound call."""


class Sequence:
    """Always targets the first node."""

    def __init__(self, size: int) -> None:
        self.size = _checked_size(size)

    def select(self) -> int:
        return 0

    def __repr__(self) -> str:
        return f"Sequence(size={self.size})"


class RoundRobin:
    """Cycles through every node, one step per call."""

    def __init__(self, size: int) -> None:
        self.size = _checked_size(size)
        self._cursor = 0
        self._lock = threading.Lock()

    @property
    def cursor(self) -> int:
        return self._cursor

    def select(self) -> int:
        with self._lock:
            index = self._cursor
            self._cursor = (index + 1) % self.size
        return index

    def __repr__(self) -> str:
        return f"RoundRobin(size={self.size}, cursor={self._cursor})"


STRATEGIES: dict[str, type[Sequence] | type[RoundRobin]] = {
    "sequence": Sequence,
    "round_robin": RoundRobin,
}


def create_balancer(kind: str, size: int) -> LoadBalancer:
    """Instantiate the strategy named ``kind`` for a pool of ``size`` nodes."""

    try:
        strategy = STRATEGIES[kind]
    except KeyError:
        raise ArgumentError(f"unknown load balancing type: {kind}") from None
    return strategy(size)


def _checked_size(size: int) -> int:
    if size < 1:
        raise ArgumentError(f"pool size must be at least 1, got {size}")
    return size


__all__ = ["LoadBalancer", "RoundRobin", "STRATEGIES", "Sequence", "create_balancer"]
