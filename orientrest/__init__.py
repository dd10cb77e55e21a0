"""Request routing and response classification for the OrientDB HTTP API."""

from __future__ import annotations

from .balancing import LoadBalancer, RoundRobin, Sequence, create_balancer
from .client import RestClient
from .config import ClientOptions, ConnectOptions, NodeOptions, load_options
from .errors import (
    ArgumentError,
    ConnectionError,
    DataError,
    NotFoundError,
    OrientRestError,
    ProtocolError,
    ServerError,
    TransportError,
    UnauthorizedError,
)
from .records import Document, Edge, EdgeTarget, EdgeTargetKind, OClass, OProperty, Rid, Vertex, edge_target
from .versions import DEFAULT_SERVER_VERSION, compare_versions

__all__ = [
    "ArgumentError",
    "ClientOptions",
    "ConnectOptions",
    "ConnectionError",
    "DEFAULT_SERVER_VERSION",
    "DataError",
    "Document",
    "Edge",
    "EdgeTarget",
    "EdgeTargetKind",
    "LoadBalancer",
    "NodeOptions",
    "NotFoundError",
    "OClass",
    "OProperty",
    "OrientRestError",
    "ProtocolError",
    "RestClient",
    "Rid",
    "RoundRobin",
    "Sequence",
    "ServerError",
    "TransportError",
    "UnauthorizedError",
    "Vertex",
    "compare_versions",
    "create_balancer",
    "edge_target",
    "load_options",
]
