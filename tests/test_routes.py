from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

import relgraph.routes.families as families_routes
import relgraph.routes.graph as graph_routes
import relgraph.routes.relationship as relationship_routes
import relgraph.routes.suggestions as suggestions_routes
from relgraph.main import app
from relgraph.models import RelationshipType
from relgraph.routes.relationship import RelationshipCreate, RelationshipUpdate
from relgraph.routes.suggestions import SuggestionAccept
from relgraph.store import DataStore


class _FakeConn:
    """Stands in for a psycopg connection; the store is patched in separately."""

    def __init__(self) -> None:
        self.saved: list[Any] = []
        self.deleted: list[str] = []
        self.commits = 0

    def commit(self) -> None:
        self.commits += 1


@pytest.fixture()
def fake_db(monkeypatch: pytest.MonkeyPatch, family_store: DataStore) -> tuple[_FakeConn, DataStore]:
    conn = _FakeConn()

    @contextmanager
    def _fake_db_conn() -> Iterator[_FakeConn]:
        yield conn

    def _save(c: _FakeConn, rel: Any) -> None:
        c.saved.append(rel)

    def _delete(c: _FakeConn, rid: str) -> None:
        c.deleted.append(rid)

    for mod in (families_routes, graph_routes, relationship_routes, suggestions_routes):
        monkeypatch.setattr(mod, "db_conn", _fake_db_conn)
        monkeypatch.setattr(mod, "load_store", lambda _conn: family_store)
    for mod in (relationship_routes, suggestions_routes):
        monkeypatch.setattr(mod, "save_relationship", _save)
    monkeypatch.setattr(relationship_routes, "delete_relationship_row", _delete)

    return conn, family_store


# ---------------------------------------------------------------------------
# Families and layout
# ---------------------------------------------------------------------------


def test_list_families(fake_db) -> None:
    payload = families_routes.list_families()
    assert payload["total"] == 1
    (fam,) = payload["results"]
    assert fam["id"] == "gran"
    assert fam["name"] == "Smith Family"
    assert fam["member_ids"] == ["dad", "gran", "kid", "mum", "nana"]
    assert fam["color"] == "#3b82f6"


def test_family_name_override_is_applied(fake_db) -> None:
    _conn, store = fake_db
    store.settings.family_name_overrides["gran"] = "The Smith-Joneses"
    assert families_routes.get_family("gran")["name"] == "The Smith-Joneses"


def test_custom_palette_is_used(fake_db) -> None:
    _conn, store = fake_db
    store.settings.family_colors = ["#111111", "#222222"]
    (fam,) = families_routes.list_families()["results"]
    assert fam["color"] == "#111111"


def test_unknown_family_is_404(fake_db) -> None:
    with pytest.raises(HTTPException) as exc:
        families_routes.get_family("nope")
    assert exc.value.status_code == 404


def test_graph_layout_payload(fake_db) -> None:
    _conn, store = fake_db
    store.set_primary_user("kid")

    payload = graph_routes.graph_layout(mode="hierarchical", family=None, center=None)

    assert payload["center_id"] == "kid"
    nodes = {n["id"]: n for n in payload["nodes"]}
    assert set(nodes) == {p.id for p in store.people}
    assert nodes["kid"]["is_center"] is True
    assert nodes["kid"]["x"] == 0.0 and nodes["kid"]["y"] == 0.0
    assert nodes["mum"]["display_name"] == "Mum Jones"
    for e in payload["edges"]:
        assert e["from"] in nodes
        assert e["to"] in nodes


def test_graph_layout_family_filter(fake_db) -> None:
    payload = graph_routes.graph_layout(mode="radial", family="gran", center=None)
    ids = {n["id"] for n in payload["nodes"]}
    assert ids == {"gran", "dad", "mum", "nana", "kid"}

    with pytest.raises(HTTPException) as exc:
        graph_routes.graph_layout(mode="radial", family="nope", center=None)
    assert exc.value.status_code == 404


def test_graph_center(fake_db) -> None:
    out = graph_routes.graph_center(id="dad", mode="radial", family=None)
    assert out == {"id": "dad", "x": 0.0, "y": 0.0}

    with pytest.raises(HTTPException) as exc:
        graph_routes.graph_center(id="pal", mode="radial", family="gran")
    assert exc.value.status_code == 404


# ---------------------------------------------------------------------------
# Relationships
# ---------------------------------------------------------------------------


def test_distance_reports_disconnected(fake_db) -> None:
    out = relationship_routes.relationship_distance(from_id="kid", to_id="solo")
    assert out == {"from": "kid", "to": "solo", "hops": None, "connected": False}

    out = relationship_routes.relationship_distance(from_id="gran", to_id="kid")
    assert out["hops"] == 2
    assert out["connected"] is True


def test_distance_resolves_me(fake_db) -> None:
    _conn, store = fake_db
    store.set_primary_user("kid")
    out = relationship_routes.relationship_distance(from_id="me", to_id="dad")
    assert out["from"] == "kid"
    assert out["hops"] == 1


def test_path(fake_db) -> None:
    out = relationship_routes.relationship_path(from_id="nana", to_id="kid")
    assert [p["id"] for p in out["path"]] == ["nana", "mum", "dad", "kid"]
    assert out["hops"] == 3


def test_path_reports_resolved_ids(fake_db) -> None:
    _conn, store = fake_db
    store.set_primary_user("kid")

    out = relationship_routes.relationship_path(from_id="me", to_id="gran")
    assert (out["from"], out["to"]) == ("kid", "gran")

    out = relationship_routes.relationship_path(from_id="me", to_id="solo")
    assert out == {"from": "kid", "to": "solo", "path": []}


def test_create_relationship_saves_and_commits(fake_db) -> None:
    conn, store = fake_db
    out = relationship_routes.create_relationship(
        RelationshipCreate(person_a_id="pal", person_b_id="solo", type="Colleague")
    )
    assert out["type"] == "colleague"
    assert out["reverse_type"] == "colleague"
    assert conn.saved == [store.get_relationship(out["id"])]
    assert conn.commits == 1


def test_create_self_relationship_is_400(fake_db) -> None:
    conn, store = fake_db
    before = len(store.relationships)
    with pytest.raises(HTTPException) as exc:
        relationship_routes.create_relationship(RelationshipCreate(person_a_id="kid", person_b_id="kid", type="sibling"))
    assert exc.value.status_code == 400
    assert len(store.relationships) == before
    assert conn.saved == []


def test_create_with_unknown_person_is_404(fake_db) -> None:
    with pytest.raises(HTTPException) as exc:
        relationship_routes.create_relationship(RelationshipCreate(person_a_id="kid", person_b_id="ghost", type="friend"))
    assert exc.value.status_code == 404


def test_update_relationship_type(fake_db) -> None:
    conn, _store = fake_db
    out = relationship_routes.update_relationship("r4", RelationshipUpdate(type="grandparent"))
    assert out["type"] == "grandparent"
    assert out["reverse_type"] == "grandchild"
    assert conn.commits == 1


def test_update_with_null_type_keeps_record_valid(fake_db) -> None:
    conn, store = fake_db
    out = relationship_routes.update_relationship("r4", RelationshipUpdate(type=None, person_a_id=None, label="birth"))

    assert out["type"] == "parent"
    assert out["reverse_type"] == "child"
    assert out["person_a_id"] == "dad"
    saved = conn.saved[-1]
    assert saved.type == RelationshipType.PARENT
    assert store.get_relationship("r4").label == "birth"


def test_update_to_self_relationship_is_400(fake_db) -> None:
    with pytest.raises(HTTPException) as exc:
        relationship_routes.update_relationship("r4", RelationshipUpdate(person_b_id="dad"))
    assert exc.value.status_code == 400


def test_delete_relationship(fake_db) -> None:
    conn, store = fake_db
    assert relationship_routes.delete_relationship("r5") == {"ok": True}
    assert conn.deleted == ["r5"]
    assert store.get_relationship("r5") is None

    with pytest.raises(HTTPException) as exc:
        relationship_routes.delete_relationship("r5")
    assert exc.value.status_code == 404


# ---------------------------------------------------------------------------
# Suggestions
# ---------------------------------------------------------------------------


def test_list_suggestions(fake_db) -> None:
    payload = suggestions_routes.list_suggestions()
    assert payload["total"] == 3
    assert {s["type"] for s in payload["results"]} == {"grandparent", "in_law"}


def test_accept_one(fake_db) -> None:
    conn, store = fake_db
    out = suggestions_routes.accept_one(SuggestionAccept(id="suggestion-gran:kid-grandparent"))
    assert out["type"] == "grandparent"
    assert store.relationships_from_perspective("kid", "gran") == [RelationshipType.GRANDCHILD]
    assert len(conn.saved) == 1

    with pytest.raises(HTTPException) as exc:
        suggestions_routes.accept_one(SuggestionAccept(id="suggestion-gran:kid-grandparent"))
    assert exc.value.status_code == 404


def test_accept_all_saves_every_row(fake_db) -> None:
    conn, store = fake_db
    out = suggestions_routes.accept_every()
    assert out["total"] == 3
    assert len(conn.saved) == 3
    assert conn.commits == 1
    assert {r.id for r in conn.saved} == {c["id"] for c in out["created"]}
    assert suggestions_routes.list_suggestions()["total"] == 0


# ---------------------------------------------------------------------------
# HTTP surface
# ---------------------------------------------------------------------------


def test_health() -> None:
    client = TestClient(app)
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"ok": "true"}


def test_http_layout_rejects_unknown_mode(fake_db) -> None:
    client = TestClient(app)
    assert client.get("/graph/layout", params={"mode": "spiral"}).status_code == 422
    resp = client.get("/graph/layout", params={"mode": "force"})
    assert resp.status_code == 200
    assert resp.json()["mode"] == "force"


def test_http_patch_null_type(fake_db) -> None:
    _conn, store = fake_db
    client = TestClient(app)
    resp = client.patch("/relationships/r4", json={"type": None})
    assert resp.status_code == 200
    assert store.get_relationship("r4").type == RelationshipType.PARENT


def test_http_self_relationship_is_400(fake_db) -> None:
    client = TestClient(app)
    resp = client.post("/relationships", json={"person_a_id": "dad", "person_b_id": "dad", "type": "friend"})
    assert resp.status_code == 400
