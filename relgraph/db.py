from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator

import psycopg

try:
    from .models import Person, Relationship, normalize_relationship_type
    from .store import DataStore, Settings
except ImportError:  # pragma: no cover
    # Support running with CWD=relgraph (e.g., `python -m uvicorn main:app`).
    from models import Person, Relationship, normalize_relationship_type
    from store import DataStore, Settings


def get_database_url() -> str:
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set")
    return url


@contextmanager
def db_conn() -> Iterator[psycopg.Connection]:
    """Yield a database connection; committed by callers that write."""
    with psycopg.connect(get_database_url()) as conn:
        yield conn


def _iso(value: object) -> str | None:
    if value is None:
        return None
    iso = getattr(value, "isoformat", None)
    return iso() if iso else str(value)


def load_store(conn: psycopg.Connection) -> DataStore:
    """Read the full people/relationship snapshot the engine works on."""

    people = [
        Person(
            id=str(pid),
            first_name=first_name or "",
            last_name=last_name or "",
            nickname=nickname,
            tags=list(tags or []),
        )
        for pid, first_name, last_name, nickname, tags in conn.execute(
            """
            SELECT id, first_name, last_name, nickname, tags
            FROM person
            ORDER BY created_at, id
            """.strip()
        ).fetchall()
    ]

    relationships: list[Relationship] = []
    for rid, a, b, rel_type, reverse_type, label, notes, created_at, updated_at in conn.execute(
        """
        SELECT id, person_a_id, person_b_id, type, reverse_type, label, notes, created_at, updated_at
        FROM relationship
        ORDER BY created_at, id
        """.strip()
    ).fetchall():
        relationships.append(
            Relationship(
                id=str(rid),
                person_a_id=str(a),
                person_b_id=str(b),
                type=normalize_relationship_type(rel_type),
                reverse_type=normalize_relationship_type(reverse_type) if reverse_type else None,
                label=label,
                notes=notes,
                created_at=_iso(created_at),
                updated_at=_iso(updated_at),
            )
        )

    settings = Settings()
    row = conn.execute("SELECT primary_user_id, family_colors FROM app_settings WHERE id = 1").fetchone()
    if row:
        settings.primary_user_id = row[0]
        settings.family_colors = [str(c) for c in row[1]] if row[1] else None
    for group_id, name in conn.execute("SELECT group_id, name FROM family_name_override").fetchall():
        settings.family_name_overrides[str(group_id)] = name
    for person_id, group_id in conn.execute(
        "SELECT person_id, group_id FROM family_membership_override"
    ).fetchall():
        settings.family_membership_overrides[str(person_id)] = str(group_id)

    return DataStore(people=people, relationships=relationships, settings=settings)


def save_relationship(conn: psycopg.Connection, rel: Relationship) -> None:
    """Insert or update one relationship row (no commit)."""

    conn.execute(
        """
        INSERT INTO relationship (
          id, person_a_id, person_b_id, type, reverse_type, label, notes, created_at, updated_at
        )
        VALUES (%s,%s,%s,%s,%s,%s,%s,%s::timestamptz,%s::timestamptz)
        ON CONFLICT (id) DO UPDATE SET
          person_a_id = EXCLUDED.person_a_id,
          person_b_id = EXCLUDED.person_b_id,
          type = EXCLUDED.type,
          reverse_type = EXCLUDED.reverse_type,
          label = EXCLUDED.label,
          notes = EXCLUDED.notes,
          updated_at = EXCLUDED.updated_at
        """.strip(),
        (
            rel.id,
            rel.person_a_id,
            rel.person_b_id,
            rel.type.value,
            rel.reverse_type.value if rel.reverse_type else None,
            rel.label,
            rel.notes,
            rel.created_at,
            rel.updated_at,
        ),
    )


def delete_relationship_row(conn: psycopg.Connection, relationship_id: str) -> None:
    conn.execute("DELETE FROM relationship WHERE id = %s", (relationship_id,))
