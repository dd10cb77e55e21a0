"""Error taxonomy raised by the REST client."""

from __future__ import annotations


class OrientRestError(RuntimeError):
    """Base class for every error raised by orientrest."""


class ConnectionError(OrientRestError):
    """Raised when connecting fails or a session-bound call runs while disconnected."""


class TransportError(ConnectionError):
    """Raised when the HTTP library cannot complete an exchange with a node."""


class UnauthorizedError(OrientRestError):
    """Server answered 401."""


class ServerError(OrientRestError):
    """Server answered 500."""


class ProtocolError(OrientRestError):
    """Unexpected status code, content type or payload."""


class NotFoundError(OrientRestError):
    """Record or class does not exist."""


class DataError(OrientRestError):
    """Validation failure or conflicting modification of a record."""


class ArgumentError(OrientRestError, ValueError):
    """Malformed caller input, detected before any network call."""


__all__ = [
    "ArgumentError",
    "ConnectionError",
    "DataError",
    "NotFoundError",
    "OrientRestError",
    "ProtocolError",
    "ServerError",
    "TransportError",
    "UnauthorizedError",
]
