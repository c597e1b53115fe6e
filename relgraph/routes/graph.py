from __future__ import annotations

from typing import Any, Literal, Optional

from fastapi import APIRouter, HTTPException, Query

try:
    from ..db import db_conn, load_store
    from ..layout import center_on, compute_layout
    from ..resolve import _resolve_person_id
    from ..serialize import _layout_to_public, _person_to_public
    from .families import _family_index
except ImportError:  # pragma: no cover
    # Support running with CWD=relgraph (e.g., `python -m uvicorn main:app`).
    from db import db_conn, load_store
    from layout import center_on, compute_layout
    from resolve import _resolve_person_id
    from serialize import _layout_to_public, _person_to_public
    from routes.families import _family_index

router = APIRouter()


@router.get("/graph/layout")
def graph_layout(
    mode: Literal["radial", "hierarchical", "force"] = Query(default="radial"),
    family: Optional[str] = Query(default=None, max_length=64),
    center: Optional[str] = Query(default=None, max_length=64),
) -> dict[str, Any]:
    """Positions and styled edges for the relationship graph.

    - ``family`` restricts the graph to one family group.
    - ``center`` picks the focal person (``me`` for the primary user); by
      default the primary user is used when they are in view, otherwise the
      best-connected person.
    """

    with db_conn() as conn:
        store = load_store(conn)

    index = _family_index(store)
    if family is not None and index.group(family) is None:
        raise HTTPException(status_code=404, detail=f"family not found: {family}")

    center_hint = _resolve_person_id(store, center) if center else store.settings.primary_user_id

    result = compute_layout(
        store.people,
        store.relationships,
        mode=mode,
        center_id=center_hint,
        families=index,
        family_id=family,
    )

    payload = _layout_to_public(result)
    people_by_id = {p.id: p for p in store.people}
    for node in payload["nodes"]:
        node.update(
            {k: v for k, v in _person_to_public(people_by_id.get(node["id"]), node["id"]).items() if k != "id"}
        )
    return payload


@router.get("/graph/center")
def graph_center(
    id: str = Query(min_length=1, max_length=64),
    mode: Literal["radial", "hierarchical", "force"] = Query(default="radial"),
    family: Optional[str] = Query(default=None, max_length=64),
) -> dict[str, Any]:
    """Viewport target for focusing on one person in the current layout."""

    with db_conn() as conn:
        store = load_store(conn)

    person_id = _resolve_person_id(store, id)
    result = compute_layout(
        store.people,
        store.relationships,
        mode=mode,
        center_id=store.settings.primary_user_id,
        families=_family_index(store),
        family_id=family,
    )
    pt = center_on(result, person_id)
    if pt is None:
        raise HTTPException(status_code=404, detail=f"person not in view: {id}")
    return {"id": person_id, "x": pt.x, "y": pt.y}
