"""REST client tying the node pool, session and response processing together."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Mapping
from urllib.parse import quote

from .balancing import LoadBalancer, create_balancer
from .config import ClientOptions, ConnectOptions, parse_options
from .dispatch import RequestDispatcher
from .errors import ArgumentError, ConnectionError, DataError, NotFoundError, OrientRestError, ProtocolError
from .guards import requires_connection, timed
from .models import HttpRequestSpec
from .nodes import NodePool
from .records import Document, Edge, OClass, Rid, Vertex, edge_target
from .responses import (
    CONCURRENT_MODIFICATION,
    INVALID_CLASS,
    RECORD_ID_NOT_FOUND,
    RECORD_NOT_FOUND,
    VALIDATION_FAILED,
    DomainCheck,
    ResponseProcessor,
)
from .session import Session, SessionState
from .transports import TransportFactory
from .versions import normalize_server_version, supports_class_endpoint

LOG = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


class RestClient:
    """Client for the OrientDB HTTP API.

    Example:
        client = RestClient(nodes=[{"port": 2480}, {"port": 2481}], load_balancing="round_robin")
        client.connect(database="demo", user="admin", password="admin")
        rows = client.query("SELECT FROM OUser")
        client.disconnect()
    """

    def __init__(
        self,
        options: ClientOptions | Mapping[str, Any] | None = None,
        *,
        transport_factory: TransportFactory | None = None,
        **overrides: Any,
    ) -> None:
        if isinstance(options, ClientOptions) and not overrides:
            self._options = options
        else:
            data = options.model_dump() if isinstance(options, ClientOptions) else dict(options or {})
            data.update(overrides)
            self._options = parse_options(ClientOptions, data)
        self._pool = NodePool.from_options(self._options, transport_factory)
        self._balancer = create_balancer(self._options.load_balancing, len(self._pool))
        self._dispatcher = RequestDispatcher(self._pool, self._balancer)
        self._processor = ResponseProcessor()
        self._session = Session()
        LOG.info(
            "client initialized with %d node(s)",
            len(self._pool),
            extra={
                "transport_library": self._options.transport_library,
                "load_balancing": self._options.load_balancing,
            },
        )

    # ------------------------------------------------------------ properties

    @property
    def options(self) -> ClientOptions:
        return self._options

    @property
    def nodes(self) -> NodePool:
        return self._pool

    @property
    def balancer(self) -> LoadBalancer:
        return self._balancer

    @property
    def session(self) -> SessionState:
        return self._session.state

    @property
    def connected(self) -> bool:
        return self._session.connected

    @property
    def database(self) -> str | None:
        return self._session.state.database

    @property
    def user(self) -> str | None:
        return self._session.state.user

    @property
    def server_version(self) -> str | None:
        return self._session.state.server_version

    def __enter__(self) -> RestClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.disconnect()

    # ------------------------------------------------------------ connection

    def connect(self, options: ConnectOptions | Mapping[str, Any] | None = None, **kwargs: Any) -> dict[str, Any]:
        """Open a session; returns the database metadata sent by the server."""

        if isinstance(options, ConnectOptions) and not kwargs:
            params = options
        else:
            params = parse_options(ConnectOptions, {**dict(options or {}), **kwargs})
        with self._session.transition() as current:
            if current.connected:
                raise ConnectionError(f"already connected to database '{current.database}'")
            spec = HttpRequestSpec("get", f"connect/{_segment(params.database)}")
            try:
                response = self._dispatcher.dispatch(spec, user=params.user, password=params.password)
                info = self._processor.process(response)
                if not isinstance(info, dict):
                    raise ProtocolError("connect returned no database metadata")
            except Exception as exc:
                self._session.reset()
                self._pool.cleanup()
                raise ConnectionError(f"failed to connect to database '{params.database}': {exc}") from exc

            server = info.get("server")
            raw_version = server.get("version") if isinstance(server, Mapping) else None
            server_version = normalize_server_version(raw_version)
            self._session.establish(params.database, params.user, params.password, server_version)
        LOG.debug(
            "successfully connected to server, version=%s",
            server_version,
            extra={"database": params.database},
        )
        return info

    def disconnect(self) -> None:
        """Close the session; local state is reset even if the server call fails."""

        with self._session.transition() as current:
            if not current.connected:
                return
            try:
                # the server may answer 401 here, and that is not a failure
                self._dispatcher.dispatch(
                    HttpRequestSpec("get", "disconnect"),
                    user=current.user,
                    password=current.password,
                )
            except OrientRestError as exc:
                LOG.debug("disconnect request failed: %s", exc)
            finally:
                self._session.reset()
                self._pool.cleanup()
                LOG.debug("disconnected from server")

    def server(self, user: str | None = None, password: str | None = None) -> Any:
        """Server information; ``user``/``password`` override the session's."""

        return self._call(HttpRequestSpec("get", "server", user=user, password=password))

    # -------------------------------------------------------------- database

    def create_database(
        self,
        database: str,
        type: str = "memory",
        user: str | None = None,
        password: str | None = None,
    ) -> Any:
        _require_text(database, "database")
        _require_text(type, "type")
        spec = HttpRequestSpec(
            "post",
            f"database/{_segment(database)}/{_segment(type)}",
            user=user,
            password=password,
        )
        return self._call(spec, one_off=True)

    def get_database(
        self,
        database: str | None = None,
        user: str | None = None,
        password: str | None = None,
    ) -> Any:
        """Database information; without a name the connected database is used."""

        if database is None:
            if not self._session.connected:
                raise ConnectionError("client has to be connected if no database is given")
            database = self._session.state.database
        _require_text(database, "database")
        # a missing database cannot be told apart from bad credentials (both 401)
        return self._call(
            HttpRequestSpec("get", f"database/{_segment(database)}", user=user, password=password)
        )

    def delete_database(
        self,
        database: str,
        user: str | None = None,
        password: str | None = None,
    ) -> Any:
        _require_text(database, "database")
        spec = HttpRequestSpec("delete", f"database/{_segment(database)}", user=user, password=password)
        return self._call(spec, one_off=True)

    # ------------------------------------------------------------------- SQL

    @requires_connection
    @timed
    def query(self, sql: str, limit: int | None = None) -> list[Document | Any]:
        """Run a read query; records carrying ``@class`` come back as Documents."""

        _require_text(sql, "query")
        path = f"query/{self._db_segment()}/sql/{_segment(sql)}"
        if limit is not None:
            if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
                raise ArgumentError(f"limit has to be a positive integer, got {limit!r}")
            path = f"{path}/{limit}"
        entries = self._call(HttpRequestSpec("get", path), (RECORD_NOT_FOUND,))
        return [
            Document.from_json(entry) if isinstance(entry, Mapping) and entry.get("@class") else entry
            for entry in _result_entries(entries)
        ]

    @requires_connection
    @timed
    def command(self, sql: str) -> Any:
        _require_text(sql, "command")
        return self._call(HttpRequestSpec("post", f"command/{self._db_segment()}/sql/{_segment(sql)}"))

    # ----------------------------------------------------------------- class

    @requires_connection
    def get_class(self, name: str) -> OClass:
        _require_text(name, "class name")
        if supports_class_endpoint(self.server_version):
            data = self._call(
                HttpRequestSpec("get", f"class/{self._db_segment()}/{_segment(name)}"),
                (INVALID_CLASS,),
            )
            if not isinstance(data, Mapping):
                raise ProtocolError(f"unexpected class payload for '{name}'")
            return OClass.from_json(data)

        # GET class/ on servers before 1.1.0 returns only data, so filter
        # the metadata delivered by connect instead
        info = self._call(
            HttpRequestSpec("get", f"connect/{self._db_segment()}"),
            (INVALID_CLASS,),
        )
        if not isinstance(info, Mapping):
            raise ProtocolError("connect returned no database metadata")
        classes = [item for item in info.get("classes") or () if item.get("name") == name]
        if len(classes) != 1:
            raise NotFoundError(f"class not found, name={name}")
        return OClass.from_json(classes[0])

    @requires_connection
    def class_exists(self, name: str) -> bool:
        try:
            self.get_class(name)
        except NotFoundError:
            return False
        return True

    @requires_connection
    def create_class(
        self,
        name: str,
        extends: str | None = None,
        cluster: int | None = None,
        force: bool = False,
    ) -> Any:
        _require_text(name, "class name")
        if force and self.class_exists(name):
            self.drop_class(name, mode="nocheck")
        sql = f"CREATE CLASS {name}"
        if extends:
            sql += f" EXTENDS {extends}"
        if cluster is not None:
            sql += f" CLUSTER {cluster}"
        return self.command(sql)

    @requires_connection
    def drop_class(self, name: str, mode: str = "strict") -> Any:
        """Drop a class; ``strict`` mode refuses while subclasses still exist."""

        _require_text(name, "class name")
        if mode not in ("strict", "nocheck"):
            raise ArgumentError(f"unknown drop mode: {mode}")
        if mode == "strict":
            info = self.get_database()
            children = [
                item.get("name")
                for item in info.get("classes") or ()
                if item.get("superClass") == name
            ]
            if children:
                raise DataError(f"class is super-class, cannot be deleted, name={name}")
        return self.command(f"DROP CLASS {name}")

    @requires_connection
    def create_property(
        self,
        class_name: str,
        name: str,
        type: str,
        linked_class: str | None = None,
        linked_type: str | None = None,
        mandatory: bool | None = None,
        notnull: bool | None = None,
        min: Any = None,
        max: Any = None,
        readonly: bool | None = None,
    ) -> Any:
        _require_text(class_name, "class name")
        _require_text(name, "property name")
        _require_text(type, "property type")
        if linked_class and linked_type:
            raise ArgumentError("linked_class and linked_type are mutually exclusive")
        target = f"{class_name}.{name}"
        sql = f"CREATE PROPERTY {target} {type.upper()}"
        if linked_class or linked_type:
            sql += f" {linked_class or linked_type}"
        result = self.command(sql)
        constraints = (
            ("MANDATORY", mandatory),
            ("NOTNULL", notnull),
            ("MIN", min),
            ("MAX", max),
            ("READONLY", readonly),
        )
        for attribute, value in constraints:
            if value is None:
                continue
            rendered = str(value).lower() if isinstance(value, bool) else value
            self.command(f"ALTER PROPERTY {target} {attribute} {rendered}")
        return result

    # -------------------------------------------------------------- document

    @requires_connection
    def create_document(self, doc: Document | Mapping[str, Any]) -> Rid:
        document = _as_document(doc)
        spec = HttpRequestSpec(
            "post",
            f"document/{self._db_segment()}",
            content_type=JSON_CONTENT_TYPE,
            body=json.dumps(document.to_payload()),
        )
        created = self._call(spec, (VALIDATION_FAILED,))
        if isinstance(created, Mapping):
            created = created.get("@rid")
        if not isinstance(created, str):
            raise ProtocolError("server did not return the RID of the new document")
        return Rid.parse(created.strip())

    @requires_connection
    def get_document(self, rid: Rid | str) -> Document:
        rid = Rid.parse(rid)
        data = self._call(
            HttpRequestSpec("get", f"document/{self._db_segment()}/{rid.unprefixed}"),
            (RECORD_NOT_FOUND, RECORD_ID_NOT_FOUND),
        )
        if not isinstance(data, Mapping):
            raise ProtocolError(f"unexpected document payload for {rid}")
        return Document.from_json(data)

    @requires_connection
    def update_document(self, doc: Document) -> None:
        if doc is None:
            raise ArgumentError("document is None")
        if doc.rid is None:
            raise ArgumentError("document has no RID")
        if doc.version is None:
            raise ArgumentError("document has no version")
        spec = HttpRequestSpec(
            "put",
            f"document/{self._db_segment()}/{doc.rid.unprefixed}",
            content_type=JSON_CONTENT_TYPE,
            body=json.dumps(doc.to_payload()),
        )
        self._call(spec, (CONCURRENT_MODIFICATION, VALIDATION_FAILED))

    @requires_connection
    def delete_document(self, rid: Rid | str) -> None:
        rid = Rid.parse(rid)
        self._call(
            HttpRequestSpec("delete", f"document/{self._db_segment()}/{rid.unprefixed}"),
            (RECORD_NOT_FOUND,),
        )

    # ----------------------------------------------------------------- graph

    @requires_connection
    def create_vertex(self, class_name: str, properties: Mapping[str, Any] | None = None) -> Vertex:
        _require_text(class_name, "class name")
        sql = f"CREATE VERTEX {class_name}"
        if properties:
            sql += f" CONTENT {json.dumps(dict(properties))}"
        entries = _result_entries(self.command(sql))
        if not entries:
            raise ProtocolError("server did not return the created vertex")
        return Vertex.from_json(entries[0])

    @requires_connection
    def create_edge(
        self,
        class_name: str,
        source: Vertex | Rid | str,
        target: Vertex | Rid | str,
        properties: Mapping[str, Any] | None = None,
    ) -> list[Edge]:
        _require_text(class_name, "class name")
        sql = f"CREATE EDGE {class_name} FROM {edge_target(source).sql} TO {edge_target(target).sql}"
        if properties:
            sql += f" CONTENT {json.dumps(dict(properties))}"
        return [Edge.from_json(entry) for entry in _result_entries(self.command(sql))]

    # --------------------------------------------------------------- helpers

    def _call(
        self,
        spec: HttpRequestSpec,
        checks: Iterable[DomainCheck] = (),
        *,
        one_off: bool = False,
    ) -> Any:
        user, password = self._session.credentials()
        response = self._dispatcher.dispatch(spec, user=user, password=password, one_off=one_off)
        return self._processor.process(response, checks)

    def _db_segment(self) -> str:
        return _segment(self._session.require_connected().database or "")


def _segment(value: str) -> str:
    return quote(str(value), safe="")


def _require_text(value: object, label: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ArgumentError(f"{label} is blank")


def _as_document(doc: Document | Mapping[str, Any]) -> Document:
    if isinstance(doc, Document):
        return doc
    if isinstance(doc, Mapping):
        return Document.from_json(doc)
    raise ArgumentError(f"document has to be a Document or mapping, got {type(doc).__name__}")


def _result_entries(payload: Any) -> list[Any]:
    if not isinstance(payload, Mapping) or not isinstance(payload.get("result"), list):
        raise ProtocolError("response carries no result list")
    return payload["result"]


__all__ = ["JSON_CONTENT_TYPE", "RestClient"]
