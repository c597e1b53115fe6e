"""Load an app backup (DataStore JSON) into Postgres.

The backup is the camelCase document the web app exports:
``{version, people: [...], relationships: [...], settings: {...}}``.

Relationship types are normalized here, at the boundary: unknown strings
become ``other`` and ``reverse_type`` is always recomputed from ``type``.
Self-relationships and relationships pointing at missing people are dropped.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
from pathlib import Path
from typing import Any

import psycopg

from relgraph.models import invert, normalize_relationship_type

log = logging.getLogger(__name__)


def _apply_schema(conn: psycopg.Connection, schema_sql_path: Path) -> None:
    sql = schema_sql_path.read_text(encoding="utf-8")
    with conn.cursor() as cur:
        cur.execute(sql)


def _truncate_all(conn: psycopg.Connection) -> None:
    # Order matters due to FKs.
    tables = [
        "family_membership_override",
        "family_name_override",
        "app_settings",
        "relationship",
        "person",
    ]
    with conn.cursor() as cur:
        for t in tables:
            cur.execute(f"TRUNCATE TABLE {t} CASCADE;")


def _clean_relationships(doc: dict[str, Any], person_ids: set[str]) -> tuple[list[dict[str, Any]], dict[str, int]]:
    """Normalize relationship records; returns (rows, drop counters)."""

    rows: list[dict[str, Any]] = []
    dropped = {"self": 0, "orphaned": 0}
    for rec in doc.get("relationships") or []:
        a = str(rec.get("personAId") or "")
        b = str(rec.get("personBId") or "")
        if a == b:
            dropped["self"] += 1
            continue
        if a not in person_ids or b not in person_ids:
            dropped["orphaned"] += 1
            continue
        rel_type = normalize_relationship_type(rec.get("type"))
        rows.append(
            {
                "id": str(rec["id"]),
                "person_a_id": a,
                "person_b_id": b,
                "type": rel_type.value,
                "reverse_type": invert(rel_type).value,
                "label": rec.get("label"),
                "notes": rec.get("notes"),
                "created_at": rec.get("createdAt"),
                "updated_at": rec.get("updatedAt") or rec.get("createdAt"),
            }
        )
    return rows, dropped


def _family_colors(settings: dict[str, Any]) -> list[str] | None:
    """Hex palette from the backup settings; entries may be ``{hex: ...}`` objects or plain strings."""

    colors: list[str] = []
    for entry in settings.get("familyColors") or []:
        value = entry.get("hex") if isinstance(entry, dict) else entry
        if isinstance(value, str) and value.strip():
            colors.append(value.strip())
    return colors or None


def load_datastore(
    *,
    backup_path: Path,
    schema_sql_path: Path,
    database_url: str,
    truncate: bool,
) -> dict[str, int]:
    doc = json.loads(backup_path.read_text(encoding="utf-8"))
    people = doc.get("people") or []
    person_ids = {str(p["id"]) for p in people}
    relationships, dropped = _clean_relationships(doc, person_ids)

    counts: dict[str, int] = {"people": 0, "relationships": 0}
    counts.update({f"dropped_{k}": v for k, v in dropped.items()})

    with psycopg.connect(database_url) as conn:
        _apply_schema(conn, schema_sql_path)
        if truncate:
            _truncate_all(conn)

        with conn.cursor() as cur:
            for p in people:
                cur.execute(
                    """
                    INSERT INTO person (id, first_name, last_name, nickname, tags, created_at, updated_at)
                    VALUES (%s,%s,%s,%s,%s,COALESCE(%s::timestamptz, now()),COALESCE(%s::timestamptz, now()))
                    ON CONFLICT (id) DO UPDATE SET
                      first_name = EXCLUDED.first_name,
                      last_name = EXCLUDED.last_name,
                      nickname = EXCLUDED.nickname,
                      tags = EXCLUDED.tags,
                      updated_at = EXCLUDED.updated_at;
                    """.strip(),
                    (
                        str(p["id"]),
                        p.get("firstName") or "",
                        p.get("lastName") or "",
                        p.get("nickname"),
                        list(p.get("tags") or []),
                        p.get("createdAt"),
                        p.get("updatedAt"),
                    ),
                )
                counts["people"] += 1

            for r in relationships:
                cur.execute(
                    """
                    INSERT INTO relationship (
                      id, person_a_id, person_b_id, type, reverse_type, label, notes, created_at, updated_at
                    )
                    VALUES (%s,%s,%s,%s,%s,%s,%s,COALESCE(%s::timestamptz, now()),COALESCE(%s::timestamptz, now()))
                    ON CONFLICT (id) DO UPDATE SET
                      type = EXCLUDED.type,
                      reverse_type = EXCLUDED.reverse_type,
                      label = EXCLUDED.label,
                      notes = EXCLUDED.notes,
                      updated_at = EXCLUDED.updated_at;
                    """.strip(),
                    (
                        r["id"],
                        r["person_a_id"],
                        r["person_b_id"],
                        r["type"],
                        r["reverse_type"],
                        r["label"],
                        r["notes"],
                        r["created_at"],
                        r["updated_at"],
                    ),
                )
                counts["relationships"] += 1

            settings = doc.get("settings") or {}
            primary = settings.get("primaryUserId")
            primary = str(primary) if primary and str(primary) in person_ids else None
            colors = _family_colors(settings)
            if primary or colors:
                cur.execute(
                    """
                    INSERT INTO app_settings (id, primary_user_id, family_colors) VALUES (1, %s, %s)
                    ON CONFLICT (id) DO UPDATE SET
                      primary_user_id = EXCLUDED.primary_user_id,
                      family_colors = EXCLUDED.family_colors;
                    """.strip(),
                    (primary, colors),
                )

        conn.commit()

    log.info("loaded %s", counts)
    return counts


def main() -> int:
    parser = argparse.ArgumentParser(description="Load a DataStore JSON backup into Postgres")
    parser.add_argument("--backup", required=True, help="Path to the exported backup .json")
    parser.add_argument(
        "--database-url",
        default=os.environ.get("DATABASE_URL") or "",
        help="Postgres URL (or set DATABASE_URL env var)",
    )
    parser.add_argument(
        "--schema-sql",
        default=str(Path(__file__).resolve().parents[1] / "sql" / "schema.sql"),
        help="Path to schema.sql",
    )
    parser.add_argument("--truncate", action="store_true", help="Truncate existing tables before load")

    args = parser.parse_args()
    if not args.database_url:
        raise SystemExit("Missing --database-url (or set DATABASE_URL)")

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    counts = load_datastore(
        backup_path=Path(args.backup),
        schema_sql_path=Path(args.schema_sql),
        database_url=args.database_url,
        truncate=args.truncate,
    )

    print(json.dumps({"loaded": counts}, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
