"""Family clustering.

People joined (directly or transitively) by family-typed relationships form a
family group. Friends, colleagues and "other" links never merge groups.

The clustering is recomputed from scratch on every call; name and membership
overrides are applied by ``FamilyIndex`` on top of the detected partition and
never change it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

try:
    from .models import FAMILY_EDGE_TYPES, Person, Relationship
except ImportError:  # pragma: no cover
    # Support running with CWD=relgraph (e.g., `python -m uvicorn main:app`).
    from models import FAMILY_EDGE_TYPES, Person, Relationship

# Mirrors the app's default palette (hex only; the UI owns the rest).
DEFAULT_FAMILY_COLORS: list[str] = [
    "#3b82f6",
    "#10b981",
    "#a855f7",
    "#f97316",
    "#ec4899",
    "#06b6d4",
    "#f59e0b",
    "#f43f5e",
]


@dataclass(frozen=True)
class FamilyGroup:
    id: str
    name: str
    member_ids: frozenset[str]
    color_index: int


class _IdIndex:
    """Dense id <-> index lookup, rebuilt per call."""

    def __init__(self, ids: Iterable[str]) -> None:
        self.ids: list[str] = []
        self.index: dict[str, int] = {}
        for pid in ids:
            if pid in self.index:
                continue
            self.index[pid] = len(self.ids)
            self.ids.append(pid)

    def __len__(self) -> int:
        return len(self.ids)

    def get(self, pid: str) -> Optional[int]:
        return self.index.get(pid)


class _UnionFind:
    def __init__(self, size: int) -> None:
        self.parent = list(range(size))
        self.rank = [0] * size

    def find(self, x: int) -> int:
        root = x
        while self.parent[root] != root:
            root = self.parent[root]
        # Second pass: point every node on the walk straight at the root.
        while self.parent[x] != root:
            nxt = self.parent[x]
            self.parent[x] = root
            x = nxt
        return root

    def union(self, x: int, y: int) -> None:
        rx = self.find(x)
        ry = self.find(y)
        if rx == ry:
            return
        if self.rank[rx] < self.rank[ry]:
            self.parent[rx] = ry
        elif self.rank[rx] > self.rank[ry]:
            self.parent[ry] = rx
        else:
            self.parent[ry] = rx
            self.rank[rx] += 1


def _default_family_name(person: Person | None) -> str:
    if person is None:
        return "Family"
    base = (person.last_name or "").strip() or (person.first_name or "").strip()
    return f"{base} Family" if base else "Family"


def detect_family_groups(people: list[Person], relationships: list[Relationship]) -> list[FamilyGroup]:
    """Partition people into family groups (2+ members each).

    Groups are ordered largest first; ties keep root-id order. ``color_index``
    is assigned 0..k-1 in that order.
    """

    idx = _IdIndex(p.id for p in people)
    uf = _UnionFind(len(idx))

    for rel in relationships:
        if rel.type not in FAMILY_EDGE_TYPES:
            continue
        a = idx.get(rel.person_a_id)
        b = idx.get(rel.person_b_id)
        if a is None or b is None:
            continue
        uf.union(a, b)

    members_by_root: dict[int, list[str]] = {}
    for i, pid in enumerate(idx.ids):
        members_by_root.setdefault(uf.find(i), []).append(pid)

    person_by_id = {p.id: p for p in people}
    roots = [r for r, members in members_by_root.items() if len(members) > 1]
    roots.sort(key=lambda r: (-len(members_by_root[r]), idx.ids[r]))

    groups: list[FamilyGroup] = []
    for color_index, root in enumerate(roots):
        root_id = idx.ids[root]
        groups.append(
            FamilyGroup(
                id=root_id,
                name=_default_family_name(person_by_id.get(root_id)),
                member_ids=frozenset(members_by_root[root]),
                color_index=color_index,
            )
        )
    return groups


class FamilyIndex:
    """Person -> family lookups with user overrides layered on top."""

    def __init__(
        self,
        groups: list[FamilyGroup],
        *,
        name_overrides: Mapping[str, str] | None = None,
        membership_overrides: Mapping[str, str] | None = None,
    ) -> None:
        self.groups = list(groups)
        self._name_overrides = dict(name_overrides or {})
        self._membership_overrides = dict(membership_overrides or {})
        self._by_id = {g.id: g for g in self.groups}
        self._auto: dict[str, FamilyGroup] = {}
        for g in self.groups:
            for member in g.member_ids:
                self._auto[member] = g

    def group(self, group_id: str) -> FamilyGroup | None:
        return self._by_id.get(group_id)

    def name_of(self, group: FamilyGroup) -> str:
        override = (self._name_overrides.get(group.id) or "").strip()
        return override or group.name

    def auto_group_for(self, person_id: str) -> FamilyGroup | None:
        return self._auto.get(person_id)

    def group_for(self, person_id: str) -> FamilyGroup | None:
        override_id = self._membership_overrides.get(person_id)
        if override_id is not None and override_id in self._by_id:
            return self._by_id[override_id]
        return self._auto.get(person_id)

    def members_of(self, group_id: str) -> frozenset[str]:
        """Members of a group once membership overrides are applied."""
        group = self._by_id.get(group_id)
        if group is None:
            return frozenset()
        members = {pid for pid in group.member_ids if self.group_for(pid) is group}
        for pid, target in self._membership_overrides.items():
            if target == group_id:
                members.add(pid)
        return frozenset(members)

    def color_index_for(self, person_id: str) -> int | None:
        g = self.group_for(person_id)
        return g.color_index if g is not None else None

    def color_for(self, person_id: str, palette: list[str] | None = None) -> str | None:
        colors = palette or DEFAULT_FAMILY_COLORS
        ci = self.color_index_for(person_id)
        if ci is None:
            return None
        return colors[ci % len(colors)]
