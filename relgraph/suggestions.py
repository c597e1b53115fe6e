"""Relationship inference: propose edges implied by existing ones.

Seven composition rules run in a fixed order over the full relationship set.
Deduplication happens on two levels:

- each rule works on its own copy of the "covered pairs" set, so it never
  proposes the same pair twice;
- after a rule finishes, every pair it proposed is added to the shared set,
  so later rules never propose a pair an earlier rule already claimed.

The order of ``INFERENCE_RULES`` therefore decides which rule "wins" a pair
and must not be changed casually.

Parent links are read by meaning rather than storage direction: a ``child``
edge from B to A is the same fact as a ``parent`` edge from A to B.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

try:
    from .models import (
        PARTNER_TYPES,
        Person,
        Relationship,
        RelationshipType,
        invert,
        pair_key,
    )
    from .store import DataStore
except ImportError:  # pragma: no cover
    # Support running with CWD=relgraph (e.g., `python -m uvicorn main:app`).
    from models import PARTNER_TYPES, Person, Relationship, RelationshipType, invert, pair_key
    from store import DataStore

log = logging.getLogger(__name__)

RT = RelationshipType


@dataclass(frozen=True)
class Suggestion:
    id: str
    person_a_id: str
    person_b_id: str
    type: RelationshipType
    reverse_type: RelationshipType
    reason: str
    # The intermediate person(s) that imply this relationship.
    through_person_ids: tuple[str, ...] = field(default_factory=tuple)


@dataclass
class _Snapshot:
    """Pre-indexed view of the relationship set shared by all rules."""

    names: dict[str, str]
    # (parent_id, child_id) in relationship order
    parent_links: list[tuple[str, str]]
    # (a, b) as stored, for sibling/partner edges
    sibling_links: list[tuple[str, str]]
    partner_links: list[tuple[str, str, RelationshipType]]
    people_order: list[str]

    def name(self, person_id: str) -> str:
        return self.names.get(person_id, "Unknown")

    def siblings_of(self, person_id: str) -> list[str]:
        out: list[str] = []
        for a, b in self.sibling_links:
            if a == person_id:
                out.append(b)
            elif b == person_id:
                out.append(a)
        return out

    def partners_of(self, person_id: str) -> list[tuple[str, RelationshipType]]:
        out: list[tuple[str, RelationshipType]] = []
        for a, b, t in self.partner_links:
            if a == person_id:
                out.append((b, t))
            elif b == person_id:
                out.append((a, t))
        return out

    def children_of(self, person_id: str) -> list[str]:
        return [c for p, c in self.parent_links if p == person_id]

    def parents_of(self, person_id: str) -> list[str]:
        return [p for p, c in self.parent_links if c == person_id]


def _build_snapshot(people: list[Person], relationships: Iterable[Relationship]) -> _Snapshot:
    known = {p.id for p in people}
    parent_links: list[tuple[str, str]] = []
    sibling_links: list[tuple[str, str]] = []
    partner_links: list[tuple[str, str, RelationshipType]] = []

    for r in relationships:
        a, b = r.person_a_id, r.person_b_id
        if a == b or a not in known or b not in known:
            continue
        if r.type == RT.PARENT:
            parent_links.append((a, b))
        elif r.type == RT.CHILD:
            parent_links.append((b, a))
        elif r.type == RT.SIBLING:
            sibling_links.append((a, b))
        elif r.type in PARTNER_TYPES:
            partner_links.append((a, b, RT(r.type)))

    return _Snapshot(
        names={p.id: p.display_name for p in people},
        parent_links=parent_links,
        sibling_links=sibling_links,
        partner_links=partner_links,
        people_order=[p.id for p in people],
    )


def _partner_phrase(rel_type: RelationshipType) -> str:
    return "married to" if rel_type == RT.SPOUSE else "the partner of"


class _RuleOutput:
    """Collects one rule's suggestions against its private copy of covered pairs."""

    def __init__(self, covered: set[str]) -> None:
        self.covered = covered
        self.items: list[Suggestion] = []

    def propose(
        self,
        a: str,
        b: str,
        rel_type: RelationshipType,
        kind: str,
        reason: str,
        through: tuple[str, ...],
    ) -> None:
        if a == b:
            return
        key = pair_key(a, b)
        if key in self.covered:
            return
        self.items.append(
            Suggestion(
                id=f"suggestion-{key}-{kind}",
                person_a_id=a,
                person_b_id=b,
                type=rel_type,
                reverse_type=invert(rel_type),
                reason=reason,
                through_person_ids=through,
            )
        )
        self.covered.add(key)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def _sibling_spouse_rule(s: _Snapshot, out: _RuleOutput) -> None:
    """A sibling of B, B partnered with C => A and C are in-laws."""
    for x, y in s.sibling_links:
        for sib, via in ((y, x), (x, y)):
            for partner, t in s.partners_of(via):
                out.propose(
                    sib,
                    partner,
                    RT.IN_LAW,
                    "inlaw",
                    f"{s.name(sib)} is sibling of {s.name(via)}, who is {_partner_phrase(t)} {s.name(partner)}",
                    (via,),
                )


def _sibling_child_rule(s: _Snapshot, out: _RuleOutput) -> None:
    """A sibling of B, B parent of C => A is aunt/uncle of C."""
    for x, y in s.sibling_links:
        for sib, via in ((y, x), (x, y)):
            for child in s.children_of(via):
                out.propose(
                    sib,
                    child,
                    RT.AUNT_UNCLE,
                    "auntuncle",
                    f"{s.name(sib)} is sibling of {s.name(via)}, who is parent of {s.name(child)}",
                    (via,),
                )


def _grandparent_rule(s: _Snapshot, out: _RuleOutput) -> None:
    """A parent of B, B parent of C => A is grandparent of C."""
    for grandparent, parent in s.parent_links:
        for grandchild in s.children_of(parent):
            out.propose(
                grandparent,
                grandchild,
                RT.GRANDPARENT,
                "grandparent",
                f"{s.name(grandparent)} is parent of {s.name(parent)}, who is parent of {s.name(grandchild)}",
                (parent,),
            )


def _spouse_parent_rule(s: _Snapshot, out: _RuleOutput) -> None:
    """A partnered with B, C parent of B => A and C are in-laws."""
    for x, y, t in s.partner_links:
        for spouse, via in ((x, y), (y, x)):
            for parent in s.parents_of(via):
                out.propose(
                    spouse,
                    parent,
                    RT.IN_LAW,
                    "inlaw-parent",
                    f"{s.name(spouse)} is {_partner_phrase(t)} {s.name(via)}, whose parent is {s.name(parent)}",
                    (via,),
                )


def _spouse_sibling_rule(s: _Snapshot, out: _RuleOutput) -> None:
    """A partnered with B, C sibling of B => A and C are in-laws."""
    for x, y, t in s.partner_links:
        for spouse, via in ((x, y), (y, x)):
            for sibling in s.siblings_of(via):
                out.propose(
                    spouse,
                    sibling,
                    RT.IN_LAW,
                    "inlaw-sibling",
                    f"{s.name(spouse)} is {_partner_phrase(t)} {s.name(via)}, whose sibling is {s.name(sibling)}",
                    (via,),
                )


def _cousin_rule(s: _Snapshot, out: _RuleOutput) -> None:
    """A's parent B, B sibling of C, C parent of D => A and D are cousins."""
    for person in s.people_order:
        for parent in s.parents_of(person):
            for aunt_uncle in s.siblings_of(parent):
                for cousin in s.children_of(aunt_uncle):
                    out.propose(
                        person,
                        cousin,
                        RT.COUSIN,
                        "cousin",
                        f"{s.name(person)}'s parent {s.name(parent)} is sibling of "
                        f"{s.name(aunt_uncle)}, who is parent of {s.name(cousin)}",
                        (parent, aunt_uncle),
                    )


def _child_spouse_rule(s: _Snapshot, out: _RuleOutput) -> None:
    """A parent of B, B partnered with C => A and C are in-laws."""
    for parent, child in s.parent_links:
        for partner, t in s.partners_of(child):
            out.propose(
                parent,
                partner,
                RT.IN_LAW,
                "inlaw-childspouse",
                f"{s.name(parent)} is parent of {s.name(child)}, who is {_partner_phrase(t)} {s.name(partner)}",
                (child,),
            )


InferenceRule = Callable[[_Snapshot, _RuleOutput], None]

INFERENCE_RULES: tuple[InferenceRule, ...] = (
    _sibling_spouse_rule,
    _sibling_child_rule,
    _grandparent_rule,
    _spouse_parent_rule,
    _spouse_sibling_rule,
    _cousin_rule,
    _child_spouse_rule,
)


def suggest_relationships(
    people: list[Person],
    relationships: list[Relationship],
    *,
    dismissed_ids: Optional[Iterable[str]] = None,
) -> list[Suggestion]:
    """Compute every suggestion for the current snapshot.

    ``dismissed_ids`` only hides suggestions from the result; dismissed pairs
    still count as claimed while the rules run.
    """

    snapshot = _build_snapshot(people, relationships)

    covered: set[str] = set()
    for r in relationships:
        covered.add(pair_key(r.person_a_id, r.person_b_id))

    suggestions: list[Suggestion] = []
    for rule in INFERENCE_RULES:
        out = _RuleOutput(set(covered))
        rule(snapshot, out)
        for sug in out.items:
            covered.add(pair_key(sug.person_a_id, sug.person_b_id))
        suggestions.extend(out.items)

    if dismissed_ids:
        hidden = set(dismissed_ids)
        suggestions = [sug for sug in suggestions if sug.id not in hidden]

    log.debug("computed %d relationship suggestions", len(suggestions))
    return suggestions


def accept_suggestion(store: DataStore, suggestion: Suggestion) -> str:
    """Turn a suggestion into a real relationship through the normal write path."""
    return store.create_relationship(suggestion.person_a_id, suggestion.person_b_id, suggestion.type)


def accept_all(store: DataStore) -> list[str]:
    """Accept every suggestion computed from the store as it is right now.

    Suggestions are not recomputed while they are being applied.
    """

    pending = suggest_relationships(store.people, store.relationships)
    created: list[str] = []
    for sug in pending:
        rid = accept_suggestion(store, sug)
        if rid:
            created.append(rid)
    log.info("accepted %d relationship suggestions", len(created))
    return created
