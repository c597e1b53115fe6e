"""Relationship suggestion routes.

Suggestions are never stored: they are recomputed from the snapshot on every
request and identified by their deterministic id, so the client can accept or
hide them across reloads.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

try:
    from ..db import db_conn, load_store, save_relationship
    from ..serialize import _relationship_to_public, _suggestion_to_public
    from ..suggestions import accept_all, accept_suggestion, suggest_relationships
except ImportError:  # pragma: no cover
    # Support running with CWD=relgraph (e.g., `python -m uvicorn main:app`).
    from db import db_conn, load_store, save_relationship
    from serialize import _relationship_to_public, _suggestion_to_public
    from suggestions import accept_all, accept_suggestion, suggest_relationships

router = APIRouter(prefix="/suggestions", tags=["suggestions"])


class SuggestionAccept(BaseModel):
    id: str


@router.get("")
def list_suggestions() -> dict[str, Any]:
    with db_conn() as conn:
        store = load_store(conn)

    results = [_suggestion_to_public(s) for s in suggest_relationships(store.people, store.relationships)]
    return {"results": results, "total": len(results)}


@router.post("/accept")
def accept_one(body: SuggestionAccept) -> dict[str, Any]:
    with db_conn() as conn:
        store = load_store(conn)
        pending = {s.id: s for s in suggest_relationships(store.people, store.relationships)}
        suggestion = pending.get(body.id)
        if suggestion is None:
            raise HTTPException(status_code=404, detail=f"suggestion not found: {body.id}")

        rid = accept_suggestion(store, suggestion)
        rel = store.get_relationship(rid)
        save_relationship(conn, rel)
        conn.commit()

    return _relationship_to_public(rel)


@router.post("/accept-all")
def accept_every() -> dict[str, Any]:
    with db_conn() as conn:
        store = load_store(conn)
        created_ids = accept_all(store)
        created = [store.get_relationship(rid) for rid in created_ids]
        for rel in created:
            save_relationship(conn, rel)
        conn.commit()

    return {"created": [_relationship_to_public(r) for r in created], "total": len(created)}
