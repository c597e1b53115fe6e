from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

try:
    from ..db import db_conn, delete_relationship_row, load_store, save_relationship
    from ..graph import degrees_of_separation, shortest_path
    from ..models import normalize_relationship_type
    from ..resolve import _resolve_person_id
    from ..serialize import _person_to_public, _relationship_to_public
except ImportError:  # pragma: no cover
    # Support running with CWD=relgraph (e.g., `python -m uvicorn main:app`).
    from db import db_conn, delete_relationship_row, load_store, save_relationship
    from graph import degrees_of_separation, shortest_path
    from models import normalize_relationship_type
    from resolve import _resolve_person_id
    from serialize import _person_to_public, _relationship_to_public

log = logging.getLogger(__name__)

router = APIRouter()


class RelationshipCreate(BaseModel):
    person_a_id: str
    person_b_id: str
    type: str
    label: Optional[str] = None


class RelationshipUpdate(BaseModel):
    person_a_id: Optional[str] = None
    person_b_id: Optional[str] = None
    type: Optional[str] = None
    label: Optional[str] = None
    notes: Optional[str] = None


@router.get("/relationship/distance")
def relationship_distance(
    from_id: str = Query(min_length=1, max_length=64),
    to_id: str = Query(min_length=1, max_length=64),
) -> dict[str, Any]:
    """Degrees of separation over every relationship type."""

    with db_conn() as conn:
        store = load_store(conn)

    resolved_from = _resolve_person_id(store, from_id)
    resolved_to = _resolve_person_id(store, to_id)
    hops = degrees_of_separation(store.people, store.relationships, resolved_from, resolved_to)
    return {
        "from": resolved_from,
        "to": resolved_to,
        "hops": hops,
        "connected": hops is not None,
    }


@router.get("/relationship/path")
def relationship_path(
    from_id: str = Query(min_length=1, max_length=64),
    to_id: str = Query(min_length=1, max_length=64),
) -> dict[str, Any]:
    with db_conn() as conn:
        store = load_store(conn)

    resolved_from = _resolve_person_id(store, from_id)
    resolved_to = _resolve_person_id(store, to_id)
    path_ids = shortest_path(store.people, store.relationships, resolved_from, resolved_to)
    if not path_ids:
        return {"from": resolved_from, "to": resolved_to, "path": []}

    by_id = {p.id: p for p in store.people}
    return {
        "from": resolved_from,
        "to": resolved_to,
        "path": [_person_to_public(by_id.get(pid), pid) for pid in path_ids],
        "hops": max(0, len(path_ids) - 1),
    }


@router.post("/relationships")
def create_relationship(body: RelationshipCreate) -> dict[str, Any]:
    with db_conn() as conn:
        store = load_store(conn)
        a = _resolve_person_id(store, body.person_a_id)
        b = _resolve_person_id(store, body.person_b_id)

        rid = store.create_relationship(a, b, normalize_relationship_type(body.type), body.label)
        if not rid:
            raise HTTPException(status_code=400, detail="a person cannot be related to themselves")

        rel = store.get_relationship(rid)
        save_relationship(conn, rel)
        conn.commit()

    return _relationship_to_public(rel)


@router.patch("/relationships/{relationship_id}")
def update_relationship(relationship_id: str, body: RelationshipUpdate) -> dict[str, Any]:
    updates = body.model_dump(exclude_unset=True)
    if updates.get("type") is not None:
        updates["type"] = normalize_relationship_type(updates["type"])

    with db_conn() as conn:
        store = load_store(conn)
        rel = store.get_relationship(relationship_id)
        if rel is None:
            raise HTTPException(status_code=404, detail="Relationship not found")

        for key in ("person_a_id", "person_b_id"):
            if updates.get(key) is not None:
                updates[key] = _resolve_person_id(store, updates[key])
        a = updates.get("person_a_id") or rel.person_a_id
        b = updates.get("person_b_id") or rel.person_b_id
        if a == b:
            raise HTTPException(status_code=400, detail="a person cannot be related to themselves")

        rel = store.update_relationship(relationship_id, **updates)
        save_relationship(conn, rel)
        conn.commit()

    return _relationship_to_public(rel)


@router.delete("/relationships/{relationship_id}")
def delete_relationship(relationship_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        store = load_store(conn)
        if not store.delete_relationship(relationship_id):
            raise HTTPException(status_code=404, detail="Relationship not found")
        delete_relationship_row(conn, relationship_id)
        conn.commit()

    log.info("deleted relationship %s", relationship_id)
    return {"ok": True}
