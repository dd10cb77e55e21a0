"""Tests for the REST client operations."""

from __future__ import annotations

import json
import logging
from urllib.parse import quote

import pytest

from orientrest.client import RestClient
from orientrest.errors import ArgumentError, ConnectionError, DataError, NotFoundError, ProtocolError, ServerError
from orientrest.records import Document, OClass, Rid, Vertex


def _connected(make_client, **options) -> RestClient:
    rest = make_client(**options)
    rest.connect(database="demo", user="admin", password="admin")
    return rest


# ------------------------------------------------------------------ routing


def test_round_robin_spreads_session_calls_across_nodes(server, make_client) -> None:
    server.route("GET", "server", server.json({"ok": True}))
    rest = _connected(make_client, nodes=[{"port": 2480}, {"port": 2481}], load_balancing="round_robin")

    rest.server()
    rest.server()

    assert [call.url for call in server.calls] == [
        "http://localhost:2480/connect/demo",
        "http://localhost:2481/server",
        "http://localhost:2480/server",
    ]


def test_one_off_admin_calls_always_hit_first_node(server, make_client) -> None:
    server.route("POST", "database/fresh/plocal", server.json({"classes": []}))
    server.route("DELETE", "database/fresh", server.text(""))
    rest = make_client(nodes=[{"port": 2480}, {"port": 2481}, {"port": 2482}], load_balancing="round_robin")

    rest.create_database("fresh", type="plocal", user="root", password="root")
    rest.delete_database("fresh", user="root", password="root")

    assert [call.url for call in server.calls] == [
        "http://localhost:2480/database/fresh/plocal",
        "http://localhost:2480/database/fresh",
    ]
    assert all(call.auth == ("root", "root") for call in server.calls)
    assert rest.balancer.cursor == 0


def test_create_database_defaults_to_memory(server, make_client) -> None:
    server.route("POST", "database/tmp/memory", server.json({}))

    make_client().create_database("tmp", user="root", password="root")

    assert server.paths() == ["POST database/tmp/memory"]


def test_admin_calls_reject_blank_names(server, make_client) -> None:
    rest = make_client()

    with pytest.raises(ArgumentError):
        rest.create_database("  ")
    with pytest.raises(ArgumentError):
        rest.delete_database("")
    assert server.calls == []


def test_server_accepts_credential_override(server, client: RestClient) -> None:
    server.route("GET", "server", server.json({"connections": []}))

    assert client.server(user="root", password="toor") == {"connections": []}
    client.server()

    assert [call.auth for call in server.calls[1:]] == [("root", "toor"), ("admin", "admin")]


def test_get_database_defaults_to_session_database(server, client: RestClient) -> None:
    server.route("GET", "database/demo", server.json({"classes": []}))

    assert client.get_database() == {"classes": []}


def test_get_database_without_name_needs_session(server, make_client) -> None:
    with pytest.raises(ConnectionError):
        make_client().get_database()


def test_get_database_by_name_with_override(server, make_client) -> None:
    server.route("GET", "database/other", server.json({"classes": []}))

    make_client().get_database("other", user="root", password="root")

    assert server.calls[0].auth == ("root", "root")


# --------------------------------------------------------------------- SQL


def test_query_encodes_sql_and_wraps_documents(server, client: RestClient) -> None:
    sql = "SELECT FROM Person WHERE name = 'Ann'"
    path = "query/demo/sql/SELECT%20FROM%20Person%20WHERE%20name%20%3D%20%27Ann%27/10"
    server.route(
        "GET",
        path,
        server.json(
            {
                "result": [
                    {"@type": "d", "@rid": "#11:0", "@version": 2, "@class": "Person", "name": "Ann"},
                    {"count": 3},
                ]
            }
        ),
    )

    rows = client.query(sql, limit=10)

    assert isinstance(rows[0], Document)
    assert rows[0].rid == Rid(11, 0)
    assert rows[0].get("name") == "Ann"
    assert rows[1] == {"count": 3}


def test_query_raises_not_found_on_record_pattern(server, client: RestClient) -> None:
    server.route(
        "GET",
        "query/demo/sql/SELECT%20FROM%20%2311%3A9",
        server.text("ORecordNotFoundException: #11:9", status=500),
    )

    with pytest.raises(NotFoundError):
        client.query("SELECT FROM #11:9")


@pytest.mark.parametrize("limit", [0, -1, "5", True])
def test_query_rejects_bad_limits(client: RestClient, limit: object) -> None:
    with pytest.raises(ArgumentError):
        client.query("SELECT FROM OUser", limit=limit)  # type: ignore[arg-type]


def test_blank_sql_is_rejected(server, client: RestClient) -> None:
    with pytest.raises(ArgumentError):
        client.query(" ")
    with pytest.raises(ArgumentError):
        client.command("")
    assert server.paths() == ["GET connect/demo"]


def test_command_posts_sql_and_logs_timing(server, client: RestClient, caplog: pytest.LogCaptureFixture) -> None:
    server.route("POST", "command/demo/sql/DELETE%20FROM%20Person", server.json({"result": [1]}))

    with caplog.at_level(logging.DEBUG, logger="orientrest.guards"):
        assert client.command("DELETE FROM Person") == {"result": [1]}

    assert "command took" in caplog.text


def test_timing_does_not_swallow_errors(server, client: RestClient, caplog: pytest.LogCaptureFixture) -> None:
    server.route("POST", "command/demo/sql/BROKEN", server.text("boom", status=500))

    with caplog.at_level(logging.DEBUG, logger="orientrest.guards"):
        with pytest.raises(ServerError, match="boom"):
            client.command("BROKEN")

    assert "command took" in caplog.text


# ------------------------------------------------------------------- class


def _legacy_client(server, make_client, classes: list[dict]) -> RestClient:
    server.route("GET", "connect/demo", server.json({"classes": classes, "server": {"version": "1.0.0"}}))
    return _connected(make_client)


def test_get_class_on_legacy_server_filters_connect_metadata(server, make_client) -> None:
    rest = _legacy_client(server, make_client, [{"name": "Person", "properties": [{"name": "age", "type": "INTEGER"}]}])

    clazz = rest.get_class("Person")

    assert isinstance(clazz, OClass)
    assert clazz.get_property("age").type == "INTEGER"
    assert server.paths() == ["GET connect/demo", "GET connect/demo"]


@pytest.mark.parametrize("classes", [[], [{"name": "Person"}, {"name": "Person"}]])
def test_get_class_on_legacy_server_needs_exactly_one_match(server, make_client, classes: list[dict]) -> None:
    rest = _legacy_client(server, make_client, classes + [{"name": "Other"}])

    with pytest.raises(NotFoundError, match="name=Person"):
        rest.get_class("Person")


def test_get_class_uses_class_endpoint_on_current_server(server, client: RestClient) -> None:
    server.route(
        "GET",
        "class/demo/Person",
        server.json({"name": "Person", "superClass": "V", "clusters": [11], "defaultCluster": 11}),
    )

    clazz = client.get_class("Person")

    assert clazz.name == "Person"
    assert clazz.super_class == "V"
    assert clazz.properties == ()
    assert server.paths()[-1] == "GET class/demo/Person"


def test_get_class_on_current_server_maps_invalid_class(server, client: RestClient) -> None:
    server.route("GET", "class/demo/Nope", server.text("Invalid class 'Nope'", status=500))

    with pytest.raises(NotFoundError, match="class not found"):
        client.get_class("Nope")
    assert client.class_exists("Nope") is False


def test_class_exists(server, client: RestClient) -> None:
    server.route("GET", "class/demo/Person", server.json({"name": "Person"}))

    assert client.class_exists("Person") is True


def test_create_class_builds_sql(server, client: RestClient) -> None:
    server.route("POST", "command/demo/sql/CREATE%20CLASS%20Car%20EXTENDS%20V%20CLUSTER%2012", server.text("12"))

    assert client.create_class("Car", extends="V", cluster=12) == "12"


def test_create_class_force_drops_existing(server, client: RestClient) -> None:
    server.route("GET", "class/demo/Car", server.json({"name": "Car"}))
    server.route("POST", "command/demo/sql/DROP%20CLASS%20Car", server.text("true"))
    server.route("POST", "command/demo/sql/CREATE%20CLASS%20Car", server.text("12"))

    client.create_class("Car", force=True)

    assert server.paths()[1:] == [
        "GET class/demo/Car",
        "POST command/demo/sql/DROP%20CLASS%20Car",
        "POST command/demo/sql/CREATE%20CLASS%20Car",
    ]


def test_drop_class_strict_refuses_superclass(server, client: RestClient) -> None:
    server.route(
        "GET",
        "database/demo",
        server.json({"classes": [{"name": "Vehicle"}, {"name": "Car", "superClass": "Vehicle"}]}),
    )

    with pytest.raises(DataError, match="super-class"):
        client.drop_class("Vehicle")
    assert "POST command/demo/sql/DROP%20CLASS%20Vehicle" not in server.paths()


def test_drop_class_nocheck_skips_lookup(server, client: RestClient) -> None:
    server.route("POST", "command/demo/sql/DROP%20CLASS%20Vehicle", server.text("true"))

    client.drop_class("Vehicle", mode="nocheck")

    assert server.paths()[1:] == ["POST command/demo/sql/DROP%20CLASS%20Vehicle"]


def test_drop_class_rejects_unknown_mode(client: RestClient) -> None:
    with pytest.raises(ArgumentError):
        client.drop_class("Vehicle", mode="cascade")


def test_create_property_alters_constraints(server, client: RestClient) -> None:
    for sql in (
        "CREATE%20PROPERTY%20Person.friend%20LINK%20Person",
        "ALTER%20PROPERTY%20Person.friend%20MANDATORY%20true",
        "ALTER%20PROPERTY%20Person.friend%20MAX%2010",
    ):
        server.route("POST", f"command/demo/sql/{sql}", server.text("1"))

    client.create_property("Person", "friend", "link", linked_class="Person", mandatory=True, max=10)

    assert len(server.calls) == 4


def test_create_property_rejects_two_link_targets(client: RestClient) -> None:
    with pytest.raises(ArgumentError):
        client.create_property("Person", "tags", "linklist", linked_class="Tag", linked_type="STRING")


# ---------------------------------------------------------------- document


def test_create_document_returns_rid(server, client: RestClient) -> None:
    server.route("POST", "document/demo", server.text("#11:4", status=201))

    rid = client.create_document(Document.new("Person", name="Ann"))

    assert rid == Rid(11, 4)
    call = server.calls[-1]
    assert json.loads(call.body) == {"@class": "Person", "name": "Ann"}
    assert call.headers["Content-Type"] == "application/json"


def test_create_document_accepts_json_rid(server, client: RestClient) -> None:
    server.route("POST", "document/demo", server.json({"@rid": "#11:5"}, status=201))

    assert client.create_document({"@class": "Person"}) == Rid(11, 5)


def test_create_document_maps_validation_errors(server, client: RestClient) -> None:
    server.route("POST", "document/demo", server.text("OValidationException: name is mandatory", status=500))

    with pytest.raises(DataError, match="validation problem"):
        client.create_document({"@class": "Person"})


def test_get_document(server, client: RestClient) -> None:
    server.route(
        "GET",
        "document/demo/11:0",
        server.json({"@rid": "#11:0", "@version": 3, "@class": "Person", "name": "Ann"}),
    )

    doc = client.get_document("#11:0")

    assert doc.version == 3
    assert doc.class_name == "Person"
    assert doc.properties == {"name": "Ann"}


@pytest.mark.parametrize("body", ["ORecordNotFoundException", "Record with id #11:0 was not found"])
def test_get_document_not_found(server, client: RestClient, body: str) -> None:
    server.route("GET", "document/demo/11:0", server.text(body, status=500))

    with pytest.raises(NotFoundError):
        client.get_document(Rid(11, 0))


def test_get_document_rejects_bad_rid(server, client: RestClient) -> None:
    with pytest.raises(ArgumentError):
        client.get_document("eleven")


def test_update_document_sends_payload_without_rid(server, client: RestClient) -> None:
    server.route("PUT", "document/demo/11:0", server.text(""))
    doc = Document(class_name="Person", properties={"name": "Bea"}, rid=Rid(11, 0), version=3)

    client.update_document(doc)

    assert json.loads(server.calls[-1].body) == {"@class": "Person", "@version": 3, "name": "Bea"}


@pytest.mark.parametrize(
    "doc",
    [
        Document(class_name="Person", version=1),
        Document(class_name="Person", rid=Rid(11, 0)),
    ],
)
def test_update_document_requires_rid_and_version(client: RestClient, doc: Document) -> None:
    with pytest.raises(ArgumentError):
        client.update_document(doc)


def test_update_document_maps_conflicts(server, client: RestClient) -> None:
    server.route("PUT", "document/demo/11:0", server.text("OConcurrentModificationException", status=500))
    doc = Document(class_name="Person", rid=Rid(11, 0), version=1)

    with pytest.raises(DataError, match="concurrent modification"):
        client.update_document(doc)


def test_delete_document_not_found(server, client: RestClient) -> None:
    server.route("DELETE", "document/demo/11:0", server.text("ORecordNotFoundException", status=500))

    with pytest.raises(NotFoundError):
        client.delete_document("#11:0")


def test_delete_document(server, client: RestClient) -> None:
    server.route("DELETE", "document/demo/11:0", server.text("", status=204))

    client.delete_document("11:0")

    assert server.paths()[-1] == "DELETE document/demo/11:0"


# ------------------------------------------------------------------- graph


def test_create_vertex(server, client: RestClient) -> None:
    path = 'command/demo/sql/CREATE%20VERTEX%20Person%20CONTENT%20%7B%22name%22%3A%20%22Ann%22%7D'
    server.route("POST", path, server.json({"result": [{"@rid": "#9:1", "@class": "Person", "name": "Ann"}]}))

    vertex = client.create_vertex("Person", {"name": "Ann"})

    assert vertex.rid == Rid(9, 1)
    assert vertex.get("name") == "Ann"


def test_create_edge_renders_vertex_and_query_endpoints(server, client: RestClient) -> None:
    sql = "CREATE EDGE Knows FROM #9:1 TO (SELECT FROM Person WHERE name = 'Bea')"
    server.route(
        "POST",
        f"command/demo/sql/{quote(sql, safe='')}",
        server.json({"result": [{"@class": "Knows", "out": "#9:1", "in": "#9:2"}]}),
    )

    edges = client.create_edge("Knows", Vertex(rid=Rid(9, 1)), "SELECT FROM Person WHERE name = 'Bea'")

    assert [str(edge) for edge in edges] == ["Edge Knows : #9:1 -> #9:2"]


def test_create_vertex_without_result_is_protocol_error(server, client: RestClient) -> None:
    server.route("POST", "command/demo/sql/CREATE%20VERTEX%20V", server.json({"result": []}))

    with pytest.raises(ProtocolError):
        client.create_vertex("V")
