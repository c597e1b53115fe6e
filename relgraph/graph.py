from __future__ import annotations

from typing import Iterable, Optional

try:
    from .models import Person, Relationship
except ImportError:  # pragma: no cover
    # Support running with CWD=relgraph (e.g., `python -m uvicorn main:app`).
    from models import Person, Relationship

# Returned by degrees_of_separation() when no path exists.
UNREACHABLE: Optional[int] = None


def _build_adjacency(person_ids: Iterable[str], relationships: Iterable[Relationship]) -> dict[str, list[str]]:
    """Undirected adjacency over ``person_ids``, in first-seen neighbor order.

    Every relationship contributes both directions regardless of type. Edges
    with an endpoint outside ``person_ids`` (or self-loops) are skipped.
    """

    adj: dict[str, dict[str, None]] = {pid: {} for pid in person_ids}
    for rel in relationships:
        a = rel.person_a_id
        b = rel.person_b_id
        if a == b or a not in adj or b not in adj:
            continue
        adj[a][b] = None
        adj[b][a] = None
    return {pid: list(nbs) for pid, nbs in adj.items()}


def _induced_relationships(person_ids: Iterable[str], relationships: Iterable[Relationship]) -> list[Relationship]:
    keep = set(person_ids)
    return [
        r
        for r in relationships
        if r.person_a_id != r.person_b_id and r.person_a_id in keep and r.person_b_id in keep
    ]


def _bfs_distances(adj: dict[str, list[str]], start: str) -> dict[str, int]:
    """Hop distance from ``start`` to every reachable node.

    Uses a list with an advancing head index as the queue.
    """

    if start not in adj:
        return {}
    dist: dict[str, int] = {start: 0}
    queue = [start]
    qi = 0
    while qi < len(queue):
        cur = queue[qi]
        qi += 1
        dcur = dist[cur]
        for nb in adj.get(cur, []):
            if nb in dist:
                continue
            dist[nb] = dcur + 1
            queue.append(nb)
    return dist


def _bfs_layers(adj: dict[str, list[str]], center: str) -> list[list[str]]:
    """Group nodes by hop distance from ``center``.

    Nodes BFS never reaches are appended to the last layer so that every
    node is placed.
    """

    if center not in adj:
        return []

    dist = _bfs_distances(adj, center)
    layers: list[list[str]] = []
    # dict preserves BFS discovery order, which keeps layers deterministic.
    for pid, d in dist.items():
        while len(layers) <= d:
            layers.append([])
        layers[d].append(pid)

    for pid in adj:
        if pid not in dist:
            layers[-1].append(pid)
    return layers


def degrees_of_separation(
    people: list[Person],
    relationships: list[Relationship],
    self_id: str,
    target_id: str,
) -> Optional[int]:
    """Shortest hop count between two people over all relationship types.

    Returns 0 for the same person and ``UNREACHABLE`` (None) when the two are
    not connected.
    """

    if self_id == target_id:
        return 0

    adj = _build_adjacency((p.id for p in people), relationships)
    if self_id not in adj:
        return UNREACHABLE

    visited = {self_id}
    queue: list[tuple[str, int]] = [(self_id, 0)]
    qi = 0
    while qi < len(queue):
        cur, depth = queue[qi]
        qi += 1
        for nb in adj.get(cur, []):
            if nb == target_id:
                return depth + 1
            if nb in visited:
                continue
            visited.add(nb)
            queue.append((nb, depth + 1))

    return UNREACHABLE


def shortest_path(
    people: list[Person],
    relationships: list[Relationship],
    start: str,
    goal: str,
) -> list[str]:
    """Person ids along one shortest path, inclusive; [] when not connected."""

    adj = _build_adjacency((p.id for p in people), relationships)
    if start not in adj or goal not in adj:
        return []
    if start == goal:
        return [start]

    parents: dict[str, str | None] = {start: None}
    queue = [start]
    qi = 0
    while qi < len(queue):
        node = queue[qi]
        qi += 1
        for nb in adj[node]:
            if nb in parents:
                continue
            parents[nb] = node
            if nb == goal:
                # reconstruct
                path = [goal]
                cur = node
                while cur is not None:
                    path.append(cur)
                    cur = parents[cur]
                path.reverse()
                return path
            queue.append(nb)

    return []
