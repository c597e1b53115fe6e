from __future__ import annotations

from fastapi import HTTPException

try:
    from .store import DataStore
except ImportError:  # pragma: no cover
    # Support running with CWD=relgraph (e.g., `python -m uvicorn main:app`).
    from store import DataStore


def _resolve_person_id(store: DataStore, person_ref: str) -> str:
    """Resolve a person id, or ``me`` for the primary user, against the snapshot."""

    ref = (person_ref or "").strip()
    if ref.lower() == "me":
        me = store.primary_user()
        if me is None:
            raise HTTPException(status_code=404, detail="primary user is not set")
        return me.id

    if store.get_person(ref) is None:
        raise HTTPException(status_code=404, detail=f"person not found: {person_ref}")
    return ref
