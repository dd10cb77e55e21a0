"""Shared dataclasses used across dispatch/transport/response modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping


@dataclass(frozen=True, slots=True)
class HttpRequestSpec:
    """One request to send against a node; credentials override the session's."""

    method: str
    path: str
    content_type: str | None = None
    body: str | None = None
    user: str | None = None
    password: str | None = None


@dataclass(frozen=True, slots=True)
class HttpResponse:
    """Raw response handed back by a transport."""

    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: str = ""


__all__ = ["HttpRequestSpec", "HttpResponse"]
