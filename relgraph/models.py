from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

log = logging.getLogger(__name__)


class RelationshipType(str, Enum):
    PARENT = "parent"
    CHILD = "child"
    SIBLING = "sibling"
    SPOUSE = "spouse"
    PARTNER = "partner"
    GRANDPARENT = "grandparent"
    GRANDCHILD = "grandchild"
    AUNT_UNCLE = "aunt_uncle"
    NIECE_NEPHEW = "niece_nephew"
    COUSIN = "cousin"
    IN_LAW = "in_law"
    STEP_FAMILY = "step_family"
    FRIEND = "friend"
    COLLEAGUE = "colleague"
    OTHER = "other"


class RelationshipGroup(str, Enum):
    IMMEDIATE = "immediate"
    EXTENDED = "extended"
    SOCIAL = "social"
    OTHER = "other"


RT = RelationshipType

RELATIONSHIP_INVERSES: dict[RelationshipType, RelationshipType] = {
    RT.PARENT: RT.CHILD,
    RT.CHILD: RT.PARENT,
    RT.SIBLING: RT.SIBLING,
    RT.SPOUSE: RT.SPOUSE,
    RT.PARTNER: RT.PARTNER,
    RT.GRANDPARENT: RT.GRANDCHILD,
    RT.GRANDCHILD: RT.GRANDPARENT,
    RT.AUNT_UNCLE: RT.NIECE_NEPHEW,
    RT.NIECE_NEPHEW: RT.AUNT_UNCLE,
    RT.COUSIN: RT.COUSIN,
    RT.IN_LAW: RT.IN_LAW,
    RT.STEP_FAMILY: RT.STEP_FAMILY,
    RT.FRIEND: RT.FRIEND,
    RT.COLLEAGUE: RT.COLLEAGUE,
    RT.OTHER: RT.OTHER,
}

# Types that join two people into the same family cluster.
FAMILY_EDGE_TYPES: frozenset[RelationshipType] = frozenset(
    {
        RT.PARENT,
        RT.CHILD,
        RT.SIBLING,
        RT.SPOUSE,
        RT.PARTNER,
        RT.GRANDPARENT,
        RT.GRANDCHILD,
        RT.AUNT_UNCLE,
        RT.NIECE_NEPHEW,
        RT.COUSIN,
        RT.IN_LAW,
        RT.STEP_FAMILY,
    }
)

PARTNER_TYPES: frozenset[RelationshipType] = frozenset({RT.SPOUSE, RT.PARTNER})

RELATIONSHIP_GROUPS: dict[RelationshipType, RelationshipGroup] = {
    RT.PARENT: RelationshipGroup.IMMEDIATE,
    RT.CHILD: RelationshipGroup.IMMEDIATE,
    RT.SIBLING: RelationshipGroup.IMMEDIATE,
    RT.SPOUSE: RelationshipGroup.IMMEDIATE,
    RT.PARTNER: RelationshipGroup.IMMEDIATE,
    RT.GRANDPARENT: RelationshipGroup.EXTENDED,
    RT.GRANDCHILD: RelationshipGroup.EXTENDED,
    RT.AUNT_UNCLE: RelationshipGroup.EXTENDED,
    RT.NIECE_NEPHEW: RelationshipGroup.EXTENDED,
    RT.COUSIN: RelationshipGroup.EXTENDED,
    RT.IN_LAW: RelationshipGroup.EXTENDED,
    RT.STEP_FAMILY: RelationshipGroup.EXTENDED,
    RT.FRIEND: RelationshipGroup.SOCIAL,
    RT.COLLEAGUE: RelationshipGroup.SOCIAL,
    RT.OTHER: RelationshipGroup.OTHER,
}

RELATIONSHIP_LABELS: dict[RelationshipType, str] = {
    RT.PARENT: "Parent",
    RT.CHILD: "Child",
    RT.SIBLING: "Sibling",
    RT.SPOUSE: "Spouse",
    RT.PARTNER: "Partner",
    RT.GRANDPARENT: "Grandparent",
    RT.GRANDCHILD: "Grandchild",
    RT.AUNT_UNCLE: "Aunt/Uncle",
    RT.NIECE_NEPHEW: "Niece/Nephew",
    RT.COUSIN: "Cousin",
    RT.IN_LAW: "In-Law",
    RT.STEP_FAMILY: "Step-Family",
    RT.FRIEND: "Friend",
    RT.COLLEAGUE: "Colleague",
    RT.OTHER: "Other",
}

# Loose spellings seen in exports and hand-edited backups.
_TYPE_ALIASES: dict[str, RelationshipType] = {
    "mother": RT.PARENT,
    "father": RT.PARENT,
    "son": RT.CHILD,
    "daughter": RT.CHILD,
    "brother": RT.SIBLING,
    "sister": RT.SIBLING,
    "husband": RT.SPOUSE,
    "wife": RT.SPOUSE,
    "aunt": RT.AUNT_UNCLE,
    "uncle": RT.AUNT_UNCLE,
    "niece": RT.NIECE_NEPHEW,
    "nephew": RT.NIECE_NEPHEW,
    "inlaw": RT.IN_LAW,
    "stepfamily": RT.STEP_FAMILY,
    "coworker": RT.COLLEAGUE,
}


def invert(rel_type: RelationshipType) -> RelationshipType:
    """Return the type as seen from the other endpoint."""
    return RELATIONSHIP_INVERSES[rel_type]


def normalize_relationship_type(raw: str | RelationshipType | None) -> RelationshipType:
    """Map an external type string onto the closed enumeration.

    Only for system boundaries (imports, request bodies). Unknown values become
    ``other`` rather than failing.
    """

    if isinstance(raw, RelationshipType):
        return raw

    s = (raw or "").strip().lower().replace("-", "_").replace(" ", "_")
    try:
        return RelationshipType(s)
    except ValueError:
        pass

    alias = _TYPE_ALIASES.get(s.replace("_", ""))
    if alias is not None:
        return alias

    log.debug("unknown relationship type %r normalized to 'other'", raw)
    return RT.OTHER


def pair_key(a: str, b: str) -> str:
    """Canonical unordered key for a two-person pair."""
    return f"{a}:{b}" if a < b else f"{b}:{a}"


@dataclass
class Person:
    id: str
    first_name: str
    last_name: str = ""
    nickname: Optional[str] = None
    tags: list[str] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()


@dataclass
class Relationship:
    id: str
    person_a_id: str
    person_b_id: str
    type: RelationshipType
    reverse_type: Optional[RelationshipType] = None
    label: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def other(self, person_id: str) -> str:
        return self.person_b_id if self.person_a_id == person_id else self.person_a_id

    def type_from(self, person_id: str) -> RelationshipType:
        """Type of this edge as seen by ``person_id``."""
        if self.person_a_id == person_id:
            return self.type
        return self.reverse_type or invert(self.type)

    def touches(self, person_id: str) -> bool:
        return self.person_a_id == person_id or self.person_b_id == person_id
