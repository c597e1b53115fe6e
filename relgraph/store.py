"""In-memory snapshot of people and relationships.

``DataStore`` is the single write path for relationship records: ordinary
editing and accepted suggestions both go through ``create_relationship`` so
``reverse_type`` is always derived from ``type`` and never set by callers.

The graph engine modules only *read* ``people``/``relationships``; they never
keep state between calls.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

try:
    from .models import Person, Relationship, RelationshipType, invert
except ImportError:  # pragma: no cover
    # Support running with CWD=relgraph (e.g., `python -m uvicorn main:app`).
    from models import Person, Relationship, RelationshipType, invert

log = logging.getLogger(__name__)

DATA_STORE_VERSION = "1.0.0"

# Fields a caller may change through update_relationship().
_UPDATABLE_FIELDS = frozenset({"person_a_id", "person_b_id", "type", "label", "notes"})
# Required fields: an explicit None leaves the stored value as it is.
_REQUIRED_FIELDS = frozenset({"person_a_id", "person_b_id", "type"})


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Settings:
    primary_user_id: Optional[str] = None
    family_colors: Optional[list[str]] = None
    # group id -> display name
    family_name_overrides: dict[str, str] = field(default_factory=dict)
    # person id -> group id
    family_membership_overrides: dict[str, str] = field(default_factory=dict)


@dataclass
class DataStore:
    people: list[Person] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)
    settings: Settings = field(default_factory=Settings)

    # ------------------------------------------------------------------
    # People
    # ------------------------------------------------------------------

    def add_person(
        self,
        first_name: str,
        last_name: str = "",
        *,
        nickname: str | None = None,
        tags: list[str] | None = None,
        person_id: str | None = None,
    ) -> str:
        pid = person_id or str(uuid.uuid4())
        self.people.append(
            Person(id=pid, first_name=first_name, last_name=last_name, nickname=nickname, tags=list(tags or []))
        )
        return pid

    def get_person(self, person_id: str) -> Person | None:
        for p in self.people:
            if p.id == person_id:
                return p
        return None

    def delete_person(self, person_id: str) -> None:
        """Remove a person and every relationship touching them."""
        self.people = [p for p in self.people if p.id != person_id]
        self.relationships = [r for r in self.relationships if not r.touches(person_id)]
        if self.settings.primary_user_id == person_id:
            self.settings.primary_user_id = None

    # ------------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------------

    def create_relationship(
        self,
        person_a_id: str,
        person_b_id: str,
        rel_type: RelationshipType,
        label: str | None = None,
    ) -> str:
        """Append a relationship and return its id.

        Self-relationships are rejected with a warning and an empty id.
        """

        if person_a_id == person_b_id:
            log.warning("Cannot create a relationship between a person and themselves (%s)", person_a_id)
            return ""

        rid = str(uuid.uuid4())
        now = _now_iso()
        self.relationships.append(
            Relationship(
                id=rid,
                person_a_id=person_a_id,
                person_b_id=person_b_id,
                type=rel_type,
                reverse_type=invert(rel_type),
                label=label,
                created_at=now,
                updated_at=now,
            )
        )
        return rid

    def get_relationship(self, relationship_id: str) -> Relationship | None:
        for r in self.relationships:
            if r.id == relationship_id:
                return r
        return None

    def update_relationship(self, relationship_id: str, **updates: Any) -> Relationship | None:
        """Apply a partial update; ``reverse_type`` follows ``type`` only.

        Returns None for an unknown id, and rejects (with a warning) an update that
        would relate a person to themselves.
        """

        rel = self.get_relationship(relationship_id)
        if rel is None:
            return None

        changes = {
            key: value
            for key, value in updates.items()
            if key in _UPDATABLE_FIELDS and not (key in _REQUIRED_FIELDS and value is None)
        }

        a = changes.get("person_a_id", rel.person_a_id)
        b = changes.get("person_b_id", rel.person_b_id)
        if a == b:
            log.warning("Cannot update relationship %s to join a person with themselves (%s)", relationship_id, a)
            return None

        for key, value in changes.items():
            setattr(rel, key, value)

        if "type" in changes:
            rel.type = RelationshipType(rel.type)
            rel.reverse_type = invert(rel.type)
        rel.updated_at = _now_iso()
        return rel

    def delete_relationship(self, relationship_id: str) -> bool:
        before = len(self.relationships)
        self.relationships = [r for r in self.relationships if r.id != relationship_id]
        return len(self.relationships) != before

    def relationships_for(self, person_id: str) -> list[Relationship]:
        return [r for r in self.relationships if r.touches(person_id)]

    def relationships_from_perspective(self, person_id: str, other_id: str) -> list[RelationshipType]:
        """Types of every direct edge between two people, as seen by ``person_id``."""
        return [
            r.type_from(person_id)
            for r in self.relationships
            if r.touches(person_id) and r.other(person_id) == other_id
        ]

    # ------------------------------------------------------------------
    # Primary user ("Me")
    # ------------------------------------------------------------------

    def set_primary_user(self, person_id: str) -> None:
        self.settings.primary_user_id = person_id

    def clear_primary_user(self) -> None:
        self.settings.primary_user_id = None

    def primary_user(self) -> Person | None:
        pid = self.settings.primary_user_id
        return self.get_person(pid) if pid else None
