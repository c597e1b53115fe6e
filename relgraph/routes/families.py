from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException

try:
    from ..db import db_conn, load_store
    from ..families import DEFAULT_FAMILY_COLORS, FamilyIndex, detect_family_groups
    from ..serialize import _family_to_public
    from ..store import DataStore
except ImportError:  # pragma: no cover
    # Support running with CWD=relgraph (e.g., `python -m uvicorn main:app`).
    from db import db_conn, load_store
    from families import DEFAULT_FAMILY_COLORS, FamilyIndex, detect_family_groups
    from serialize import _family_to_public
    from store import DataStore

router = APIRouter()


def _family_index(store: DataStore) -> FamilyIndex:
    return FamilyIndex(
        detect_family_groups(store.people, store.relationships),
        name_overrides=store.settings.family_name_overrides,
        membership_overrides=store.settings.family_membership_overrides,
    )


@router.get("/families")
def list_families() -> dict[str, Any]:
    """Detected family groups, largest first, with user overrides applied."""

    with db_conn() as conn:
        store = load_store(conn)

    index = _family_index(store)
    palette = store.settings.family_colors or DEFAULT_FAMILY_COLORS
    results = [_family_to_public(g, index, palette) for g in index.groups]
    return {"results": results, "total": len(results)}


@router.get("/families/{family_id}")
def get_family(family_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        store = load_store(conn)

    index = _family_index(store)
    group = index.group(family_id)
    if group is None:
        raise HTTPException(status_code=404, detail=f"family not found: {family_id}")
    palette = store.settings.family_colors or DEFAULT_FAMILY_COLORS
    return _family_to_public(group, index, palette)
