"""Typed structures built from decoded JSON records."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from .errors import ArgumentError

RID_PATTERN = re.compile(r"^#?(\d+):(\d+)$")
_RID_STRING = re.compile(r"^#\d+:\d+$")


@dataclass(frozen=True, slots=True)
class Rid:
    """Record identifier ``#cluster:position``."""

    cluster: int
    position: int

    @classmethod
    def parse(cls, value: Rid | str) -> Rid:
        if isinstance(value, Rid):
            return value
        if not isinstance(value, str):
            raise ArgumentError(f"RID has to be a string, got {type(value).__name__}")
        match = RID_PATTERN.match(value.strip())
        if match is None:
            raise ArgumentError(f"bad RID format: {value!r}")
        return cls(int(match.group(1)), int(match.group(2)))

    @property
    def unprefixed(self) -> str:
        return f"{self.cluster}:{self.position}"

    def __str__(self) -> str:
        return f"#{self.unprefixed}"


def _properties(data: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if not key.startswith("@")}


def _optional_rid(value: Any) -> Rid | None:
    if value is None:
        return None
    return Rid.parse(value)


@dataclass(slots=True)
class Document:
    """Record with metadata and a mapping of its named properties."""

    class_name: str | None = None
    properties: dict[str, Any] = field(default_factory=dict)
    rid: Rid | None = None
    version: int | None = None
    record_type: str | None = None

    @classmethod
    def new(cls, class_name: str, **properties: Any) -> Document:
        return cls(class_name=class_name, properties=dict(properties))

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> Document:
        return cls(
            class_name=data.get("@class"),
            properties=_properties(data),
            rid=_optional_rid(data.get("@rid")),
            version=data.get("@version"),
            record_type=data.get("@type"),
        )

    def get(self, name: str, default: Any = None) -> Any:
        return self.properties.get(name, default)

    def to_payload(self) -> dict[str, Any]:
        """JSON body for create/update; the RID travels in the URL, not here."""

        payload: dict[str, Any] = {}
        if self.class_name is not None:
            payload["@class"] = self.class_name
        if self.version is not None:
            payload["@version"] = self.version
        payload.update(self.properties)
        return payload


@dataclass(frozen=True, slots=True)
class OProperty:
    """Property definition of a schema class."""

    name: str
    type: str
    mandatory: bool = False
    not_null: bool = False
    readonly: bool = False
    min: str | None = None
    max: str | None = None
    linked_class: str | None = None
    linked_type: str | None = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> OProperty:
        return cls(
            name=data["name"],
            type=data.get("type", ""),
            mandatory=bool(data.get("mandatory", False)),
            not_null=bool(data.get("notNull", False)),
            readonly=bool(data.get("readonly", False)),
            min=data.get("min"),
            max=data.get("max"),
            linked_class=data.get("linkedClass"),
            linked_type=data.get("linkedType"),
        )


@dataclass(frozen=True, slots=True)
class OClass:
    """Schema class as reported by the server."""

    name: str
    super_class: str | None = None
    abstract: bool = False
    clusters: tuple[int, ...] = ()
    default_cluster: int | None = None
    properties: tuple[OProperty, ...] = ()

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> OClass:
        return cls(
            name=data["name"],
            super_class=data.get("superClass") or None,
            abstract=bool(data.get("abstract", False)),
            clusters=tuple(data.get("clusters") or ()),
            default_cluster=data.get("defaultCluster"),
            # a class may have no properties at all
            properties=tuple(OProperty.from_json(item) for item in data.get("properties") or ()),
        )

    def get_property(self, name: str) -> OProperty | None:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None


@dataclass(frozen=True, slots=True)
class Vertex:
    """Graph vertex record."""

    rid: Rid
    class_name: str | None = None
    version: int | None = None
    properties: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> Vertex:
        return cls(
            rid=Rid.parse(data["@rid"]),
            class_name=data.get("@class"),
            version=data.get("@version"),
            properties=_properties(data),
        )

    def get(self, name: str, default: Any = None) -> Any:
        return self.properties.get(name, default)


@dataclass(frozen=True, slots=True)
class Edge:
    """Graph edge record; ``source`` is the ``out`` end, ``target`` the ``in`` end."""

    class_name: str | None
    source: str | None
    target: str | None
    rid: Rid | None = None
    version: int | None = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> Edge:
        return cls(
            class_name=data.get("@class"),
            source=data.get("out"),
            target=data.get("in"),
            rid=_optional_rid(data.get("@rid")),
            version=data.get("@version"),
        )

    def __str__(self) -> str:
        return f"Edge {self.class_name} : {self.source} -> {self.target}"


class EdgeTargetKind(str, Enum):
    """How an edge endpoint was given."""

    VERTEX = "vertex"
    RID = "rid"
    RID_STRING = "rid_string"
    QUERY = "query"


@dataclass(frozen=True, slots=True)
class EdgeTarget:
    """Edge endpoint and its SQL rendering."""

    kind: EdgeTargetKind
    sql: str


def edge_target(value: Vertex | Rid | str) -> EdgeTarget:
    """Convert an edge endpoint into the SQL expression used in CREATE EDGE."""

    if isinstance(value, Vertex):
        return EdgeTarget(EdgeTargetKind.VERTEX, str(value.rid))
    if isinstance(value, Rid):
        return EdgeTarget(EdgeTargetKind.RID, str(value))
    if isinstance(value, str):
        if _RID_STRING.match(value):
            return EdgeTarget(EdgeTargetKind.RID_STRING, value)
        if not value.strip():
            raise ArgumentError("edge endpoint is blank")
        return EdgeTarget(EdgeTargetKind.QUERY, f"({value})")
    raise ArgumentError(f"unsupported edge endpoint: {type(value).__name__}")


__all__ = [
    "Document",
    "Edge",
    "EdgeTarget",
    "EdgeTargetKind",
    "OClass",
    "OProperty",
    "Rid",
    "Vertex",
    "edge_target",
]
