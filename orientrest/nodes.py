"""Server nodes and the fixed-size pool the client balances across."""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Mapping

from .config import ClientOptions
from .errors import ArgumentError
from .models import HttpResponse
from .transports import Transport, TransportFactory, transport_factory

LOG = logging.getLogger(__name__)


class Node:
    """One server endpoint owning a lazily opened transport handle."""

    def __init__(self, host: str, port: int, ssl: bool, transport_factory: TransportFactory) -> None:
        self.host = host
        self.port = port
        self.ssl = ssl
        self._transport_factory = transport_factory
        self._transport: Transport | None = None

    @property
    def base_url(self) -> str:
        scheme = "https" if self.ssl else "http"
        return f"{scheme}://{self.host}:{self.port}/"

    @property
    def transport(self) -> Transport:
        """Transport handle, opened on first use and after every cleanup."""

        if self._transport is None:
            self._transport = self._transport_factory()
        return self._transport

    @property
    def is_open(self) -> bool:
        return self._transport is not None

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: str | None = None,
        auth: tuple[str, str] | None = None,
    ) -> HttpResponse:
        return self.transport.request(
            method,
            self.base_url + path,
            headers=headers,
            body=body,
            auth=auth,
        )

    def cleanup(self) -> None:
        """Release the transport handle; safe to call repeatedly."""

        transport, self._transport = self._transport, None
        if transport is not None:
            transport.close()

    def __repr__(self) -> str:
        return f"Node({self.base_url!r})"


class NodePool:
    """Ordered, fixed-size collection of nodes."""

    def __init__(self, nodes: Iterable[Node]) -> None:
        self._nodes = tuple(nodes)
        if not self._nodes:
            raise ArgumentError("node pool needs at least one node")

    @classmethod
    def from_options(cls, options: ClientOptions, factory: TransportFactory | None = None) -> NodePool:
        factory = factory or transport_factory(options.transport_library)
        return cls(
            Node(node.host, node.port, node.ssl, factory)
            for node in options.node_options()
        )

    def __len__(self) -> int:
        return len(self._nodes)

    def __getitem__(self, index: int) -> Node:
        return self._nodes[index]

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def cleanup(self) -> None:
        """Release every node's transport handle."""

        for node in self._nodes:
            try:
                node.cleanup()
            except Exception:
                LOG.exception("Node cleanup failed", extra={"node": node.base_url})
        LOG.debug("Released node resources", extra={"nodes": len(self._nodes)})


__all__ = ["Node", "NodePool"]
