"""HTTP transports used by nodes to talk to the server."""

from __future__ import annotations

from typing import Callable, Mapping, Protocol, runtime_checkable

import httpx
import requests

from .errors import ArgumentError, TransportError
from .models import HttpResponse


@runtime_checkable
class Transport(Protocol):
    """Protocol implemented by HTTP transports."""

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: str | None = None,
        auth: tuple[str, str] | None = None,
    ) -> HttpResponse:
        """Send one request and return the raw response."""

    def close(self) -> None:
        """Release pooled connections."""


TransportFactory = Callable[[], Transport]


class RequestsTransport:
    """Transport backed by a ``requests.Session``."""

    def __init__(self, session: requests.Session | None = None) -> None:
        self._session = session or requests.Session()

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: str | None = None,
        auth: tuple[str, str] | None = None,
    ) -> HttpResponse:
        try:
            response = self._session.request(
                method.upper(),
                url,
                headers=dict(headers or {}),
                data=body.encode("utf-8") if body is not None else None,
                auth=auth,
            )
        except (requests.RequestException, UnicodeError) as exc:
            raise TransportError(f"{method.upper()} {url} failed: {exc}") from exc
        return HttpResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.text,
        )

    def close(self) -> None:
        self._session.close()


class HttpxTransport:
    """Transport backed by an ``httpx.Client``."""

    def __init__(self, client: httpx.Client | None = None) -> None:
        self._client = client or httpx.Client()

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: str | None = None,
        auth: tuple[str, str] | None = None,
    ) -> HttpResponse:
        try:
            response = self._client.request(
                method.upper(),
                url,
                headers=dict(headers or {}),
                content=body.encode("utf-8") if body is not None else None,
                auth=auth,
            )
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError, UnicodeError) as exc:
            raise TransportError(f"{method.upper()} {url} failed: {exc}") from exc
        return HttpResponse(
            status_code=response.status_code,
            headers=dict(response.headers.multi_items()),
            body=response.text,
        )

    def close(self) -> None:
        self._client.close()


TRANSPORTS: dict[str, TransportFactory] = {
    "requests": RequestsTransport,
    "httpx": HttpxTransport,
}


def transport_factory(library: str) -> TransportFactory:
    """Return the factory building transports for ``library``."""

    try:
        return TRANSPORTS[library]
    except KeyError:
        raise ArgumentError(f"unknown transport library: {library}") from None


__all__ = [
    "HttpxTransport",
    "RequestsTransport",
    "TRANSPORTS",
    "Transport",
    "TransportFactory",
    "transport_factory",
]
