"""Client configuration models and loading helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Mapping

import tomllib

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ArgumentError

CONFIG_FILE = Path.home() / ".config" / "orientrest" / "config.toml"

LoadBalancing = Literal["sequence", "round_robin"]
TransportLibrary = Literal["requests", "httpx"]


class NodeOptions(BaseModel):
    """Connection parameters of one server endpoint."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    host: str = "localhost"
    port: int = Field(default=2480, ge=1, le=65535)
    ssl: bool = False


class ClientOptions(NodeOptions):
    """Construction-time options of the REST client."""

    nodes: list[NodeOptions] | None = None
    load_balancing: LoadBalancing = "sequence"
    transport_library: TransportLibrary = "requests"

    @field_validator("nodes")
    @classmethod
    def _nodes_not_empty(cls, value: list[NodeOptions] | None) -> list[NodeOptions] | None:
        if value is not None and not value:
            raise ValueError("nodes must list at least one node")
        return value

    def node_options(self) -> tuple[NodeOptions, ...]:
        """Explicit node list, or a single node built from host/port/ssl."""

        if self.nodes is None:
            return (NodeOptions(host=self.host, port=self.port, ssl=self.ssl),)
        return tuple(self.nodes)


class ConnectOptions(BaseModel):
    """Credentials and target database of a session."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    database: str = Field(min_length=1)
    user: str = Field(min_length=1)
    password: str


def parse_options(model: type[BaseModel], data: Mapping[str, Any]) -> Any:
    """Validate ``data`` against ``model`` and report problems as ArgumentError."""

    if isinstance(data, model):
        return data
    if not isinstance(data, Mapping):
        raise ArgumentError(f"options have to be a mapping, got {type(data).__name__}")
    try:
        return model.model_validate(dict(data))
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
            for error in exc.errors()
        )
        raise ArgumentError(f"invalid {model.__name__}: {problems}") from exc


def load_options(path: Path | None = None) -> ClientOptions:
    """Load client options from TOML; fall back to defaults if missing."""

    try:
        data = _read_config_file(path or CONFIG_FILE)
    except FileNotFoundError:
        return ClientOptions()
    except (tomllib.TOMLDecodeError, OSError):
        return ClientOptions()
    return parse_options(ClientOptions, data)


def _read_config_file(path: Path) -> dict[str, object]:
    with path.open("rb") as handle:
        raw = tomllib.load(handle)
    client = raw.get("client")
    if not isinstance(client, dict):
        return {}
    return dict(client)


__all__ = [
    "CONFIG_FILE",
    "ClientOptions",
    "ConnectOptions",
    "LoadBalancing",
    "NodeOptions",
    "TransportLibrary",
    "load_options",
    "parse_options",
]
