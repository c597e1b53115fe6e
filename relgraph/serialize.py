from __future__ import annotations

from typing import Any

try:
    from .families import FamilyGroup, FamilyIndex
    from .layout import LayoutResult
    from .models import Person, Relationship
    from .suggestions import Suggestion
except ImportError:  # pragma: no cover
    # Support running with CWD=relgraph (e.g., `python -m uvicorn main:app`).
    from families import FamilyGroup, FamilyIndex
    from layout import LayoutResult
    from models import Person, Relationship
    from suggestions import Suggestion


def _compact_json(value: Any) -> Any:
    """Drop None, blank strings and empty containers from a JSON-like value (0/False stay)."""

    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, list):
        items = [v for v in (_compact_json(x) for x in value) if v is not None]
        return items or None
    if isinstance(value, dict):
        fields = {k: v for k, v in ((k, _compact_json(x)) for k, x in value.items()) if v is not None}
        return fields or None
    return value


def _person_to_public(p: Person | None, person_id: str) -> dict[str, Any]:
    if p is None:
        return {"id": person_id, "display_name": None}
    return {
        "id": p.id,
        "display_name": p.display_name,
        "first_name": p.first_name,
        "last_name": p.last_name or None,
    }


def _relationship_to_public(r: Relationship) -> dict[str, Any]:
    return _compact_json(
        {
            "id": r.id,
            "person_a_id": r.person_a_id,
            "person_b_id": r.person_b_id,
            "type": r.type.value,
            "reverse_type": r.reverse_type.value if r.reverse_type else None,
            "label": r.label,
            "notes": r.notes,
            "created_at": r.created_at,
            "updated_at": r.updated_at,
        }
    )


def _family_to_public(g: FamilyGroup, index: FamilyIndex, palette: list[str]) -> dict[str, Any]:
    members = index.members_of(g.id)
    return {
        "id": g.id,
        "name": index.name_of(g),
        "member_ids": sorted(members),
        "size": len(members),
        "color_index": g.color_index,
        "color": palette[g.color_index % len(palette)] if palette else None,
    }


def _suggestion_to_public(s: Suggestion) -> dict[str, Any]:
    return {
        "id": s.id,
        "person_a_id": s.person_a_id,
        "person_b_id": s.person_b_id,
        "type": s.type.value,
        "reverse_type": s.reverse_type.value,
        "reason": s.reason,
        "through_person_ids": list(s.through_person_ids),
    }


def _layout_to_public(result: LayoutResult) -> dict[str, Any]:
    nodes = [
        {
            "id": pid,
            "x": round(pt.x, 3),
            "y": round(pt.y, 3),
            "color_index": result.colors.get(pid),
            "is_center": pid == result.center_id,
        }
        for pid, pt in result.positions.items()
    ]
    edges = [
        {
            "id": e.relationship_id,
            "from": e.source,
            "to": e.target,
            "type": e.type.value,
            "weight": e.style.weight,
            "dashed": e.style.dashed,
            "animated": e.style.animated,
            "group": e.style.group,
        }
        for e in result.edges
    ]
    return {
        "mode": result.mode,
        "center_id": result.center_id,
        "nodes": nodes,
        "edges": edges,
        "iterations": result.iterations,
    }
