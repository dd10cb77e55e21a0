"""Shared fakes standing in for the HTTP server behind the client."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Mapping

import pytest

from orientrest.client import RestClient
from orientrest.models import HttpResponse

DEMO_CLASSES = [
    {"name": "OUser", "superClass": "OIdentity", "clusters": [5], "defaultCluster": 5},
    {
        "name": "Person",
        "superClass": None,
        "clusters": [11],
        "defaultCluster": 11,
        "properties": [
            {"name": "name", "type": "STRING", "mandatory": True, "notNull": True},
            {"name": "friend", "type": "LINK", "linkedClass": "Person"},
        ],
    },
]


@dataclass(frozen=True, slots=True)
class Call:
    method: str
    url: str
    path: str
    body: str | None
    auth: tuple[str, str] | None
    headers: Mapping[str, str]


Handler = Callable[[Call], HttpResponse]


class FakeServer:
    """Routes requests by ``(METHOD, path)`` and records every call."""

    def __init__(self, server_version: str | None = "1.1.0") -> None:
        self.calls: list[Call] = []
        self.closed = 0
        self.opened = 0
        self.routes: dict[tuple[str, str], HttpResponse | Handler] = {}
        connect_info: dict[str, Any] = {"classes": DEMO_CLASSES}
        if server_version is not None:
            connect_info["server"] = {"version": server_version}
        self.route("GET", "connect/demo", self.json(connect_info))
        self.route("GET", "disconnect", self.text("", status=401))

    @staticmethod
    def json(payload: Any, status: int = 200) -> HttpResponse:
        return HttpResponse(status, {"Content-Type": "application/json"}, json.dumps(payload))

    @staticmethod
    def text(body: str, status: int = 200) -> HttpResponse:
        return HttpResponse(status, {"content-type": "text/plain"}, body)

    def route(self, method: str, path: str, response: HttpResponse | Handler) -> None:
        self.routes[(method, path)] = response

    def paths(self) -> list[str]:
        return [f"{call.method} {call.path}" for call in self.calls]

    def factory(self) -> "_FakeTransport":
        self.opened += 1
        return _FakeTransport(self)

    def handle(self, call: Call) -> HttpResponse:
        self.calls.append(call)
        response = self.routes.get((call.method, call.path))
        if response is None:
            return self.text(f"no route for {call.method} {call.path}", status=404)
        if callable(response):
            return response(call)
        return response


class _FakeTransport:
    def __init__(self, server: FakeServer) -> None:
        self._server = server

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: str | None = None,
        auth: tuple[str, str] | None = None,
    ) -> HttpResponse:
        path = url.split("/", 3)[3]
        call = Call(method.upper(), url, path, body, auth, dict(headers or {}))
        return self._server.handle(call)

    def close(self) -> None:
        self._server.closed += 1


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def make_client(server: FakeServer) -> Callable[..., RestClient]:
    def _make(**options: Any) -> RestClient:
        return RestClient(options, transport_factory=server.factory)

    return _make


@pytest.fixture
def client(make_client: Callable[..., RestClient]) -> RestClient:
    rest = make_client()
    rest.connect(database="demo", user="admin", password="admin")
    return rest
