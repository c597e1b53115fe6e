"""Graph layout: radial, hierarchical (tree) and force-directed placement.

All three modes share the same undirected adjacency and the same center
selection, and all of them place every person of the (optionally
family-filtered) input exactly once at a finite coordinate. Coordinates are
abstract canvas units centered on the focal person; the renderer is free to
translate/scale them.

Families only feed node colors here, never positions.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Literal, Optional

try:
    from .families import FamilyIndex, detect_family_groups
    from .graph import _bfs_layers, _build_adjacency, _induced_relationships
    from .models import PARTNER_TYPES, RELATIONSHIP_GROUPS, Person, Relationship, RelationshipGroup, RelationshipType
except ImportError:  # pragma: no cover
    # Support running with CWD=relgraph (e.g., `python -m uvicorn main:app`).
    from families import FamilyIndex, detect_family_groups
    from graph import _bfs_layers, _build_adjacency, _induced_relationships
    from models import PARTNER_TYPES, RELATIONSHIP_GROUPS, Person, Relationship, RelationshipGroup, RelationshipType

log = logging.getLogger(__name__)

LayoutMode = Literal["radial", "hierarchical", "force"]
LAYOUT_MODES: tuple[str, ...] = ("radial", "hierarchical", "force")


@dataclass(frozen=True)
class LayoutConfig:
    # radial
    layer_spacing: float = 180.0
    min_node_spacing: float = 120.0
    layer_angle_offset: float = math.pi / 12
    # hierarchical
    row_spacing: float = 150.0
    node_spacing: float = 180.0
    # force
    iterations: int = 300
    initial_radius: float = 250.0
    repulsion: float = 50_000.0
    spring_strength: float = 0.05
    spring_length: float = 180.0
    min_distance: float = 1.0
    max_step: float = 50.0


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class EdgeStyle:
    weight: float
    dashed: bool
    animated: bool
    group: str


@dataclass(frozen=True)
class LayoutEdge:
    relationship_id: str
    source: str
    target: str
    type: RelationshipType
    style: EdgeStyle


@dataclass
class LayoutResult:
    mode: str
    center_id: Optional[str]
    positions: dict[str, Point] = field(default_factory=dict)
    edges: list[LayoutEdge] = field(default_factory=list)
    colors: dict[str, Optional[int]] = field(default_factory=dict)
    iterations: int = 0


def edge_style(rel_type: RelationshipType) -> EdgeStyle:
    """Visual weight hint for an edge; depends on the type alone."""

    group = RELATIONSHIP_GROUPS.get(rel_type, RelationshipGroup.OTHER)
    if rel_type in PARTNER_TYPES:
        return EdgeStyle(weight=3.0, dashed=False, animated=True, group=group.value)
    if rel_type in (RelationshipType.PARENT, RelationshipType.CHILD):
        return EdgeStyle(weight=3.0, dashed=False, animated=False, group=group.value)
    if rel_type == RelationshipType.SIBLING:
        return EdgeStyle(weight=2.0, dashed=True, animated=False, group=group.value)
    if group == RelationshipGroup.EXTENDED:
        return EdgeStyle(weight=1.5, dashed=False, animated=False, group=group.value)
    return EdgeStyle(weight=1.0, dashed=True, animated=False, group=group.value)


def select_center(person_ids: list[str], adj: dict[str, list[str]], hint: str | None = None) -> str | None:
    """Focal person: the hint when present, else the highest-degree person."""

    if not person_ids:
        return None
    if hint is not None and hint in adj:
        return hint

    best = person_ids[0]
    best_degree = len(adj.get(best, []))
    for pid in person_ids[1:]:
        d = len(adj.get(pid, []))
        if d > best_degree:
            best = pid
            best_degree = d
    return best


def _layers_for(adj: dict[str, list[str]], center: str) -> list[list[str]]:
    layers = _bfs_layers(adj, center)
    # A lone center with disconnected people: keep the center alone at layer 0.
    if len(layers) == 1 and len(layers[0]) > 1:
        layers = [[center], [pid for pid in layers[0] if pid != center]]
    return layers


def radial_layout(adj: dict[str, list[str]], center: str, config: LayoutConfig) -> dict[str, Point]:
    positions: dict[str, Point] = {}
    prev_radius = 0.0
    for k, layer in enumerate(_layers_for(adj, center)):
        if k == 0:
            for pid in layer:
                positions[pid] = Point(0.0, 0.0)
            continue

        crowded = len(layer) * config.min_node_spacing / (2 * math.pi)
        radius = max(k * config.layer_spacing, crowded, prev_radius + config.min_node_spacing)
        prev_radius = radius

        step = 2 * math.pi / max(len(layer), 1)
        offset = -math.pi / 2 + k * config.layer_angle_offset
        for i, pid in enumerate(layer):
            angle = offset + i * step
            positions[pid] = Point(radius * math.cos(angle), radius * math.sin(angle))
    return positions


def hierarchical_layout(adj: dict[str, list[str]], center: str, config: LayoutConfig) -> dict[str, Point]:
    positions: dict[str, Point] = {}
    for k, row in enumerate(_layers_for(adj, center)):
        y = k * config.row_spacing
        half = (len(row) - 1) / 2
        for i, pid in enumerate(row):
            positions[pid] = Point((i - half) * config.node_spacing, y)
    return positions


def force_layout(
    adj: dict[str, list[str]],
    center: str,
    config: LayoutConfig,
) -> tuple[dict[str, Point], int]:
    """Spring embedder with a pinned center and linearly decaying damping.

    Returns the positions and the number of iterations run.
    """

    order = list(adj.keys())
    others = [pid for pid in order if pid != center]

    xs: dict[str, float] = {center: 0.0}
    ys: dict[str, float] = {center: 0.0}
    n_others = len(others)
    for i, pid in enumerate(others):
        angle = -math.pi / 2 + 2 * math.pi * i / n_others
        xs[pid] = config.initial_radius * math.cos(angle)
        ys[pid] = config.initial_radius * math.sin(angle)

    edges: list[tuple[str, str]] = []
    for a, nbs in adj.items():
        for b in nbs:
            if a < b:
                edges.append((a, b))

    iterations = max(0, int(config.iterations))
    min_d = max(config.min_distance, 1e-6)
    ran = 0
    for it in range(iterations):
        damping = (iterations - it) / iterations
        dx_acc = {pid: 0.0 for pid in order}
        dy_acc = {pid: 0.0 for pid in order}

        for i in range(len(order)):
            a = order[i]
            for j in range(i + 1, len(order)):
                b = order[j]
                dx = xs[a] - xs[b]
                dy = ys[a] - ys[b]
                dist = math.hypot(dx, dy)
                if dist < min_d:
                    # Coincident nodes: push apart along a fixed, index-derived direction.
                    angle = (i * 7 + j * 13) % 360 * math.pi / 180
                    dx, dy, dist = math.cos(angle) * min_d, math.sin(angle) * min_d, min_d
                force = config.repulsion / (dist * dist)
                fx = dx / dist * force
                fy = dy / dist * force
                dx_acc[a] += fx
                dy_acc[a] += fy
                dx_acc[b] -= fx
                dy_acc[b] -= fy

        for a, b in edges:
            dx = xs[b] - xs[a]
            dy = ys[b] - ys[a]
            dist = math.hypot(dx, dy)
            if dist < min_d:
                continue
            force = config.spring_strength * (dist - config.spring_length)
            fx = dx / dist * force
            fy = dy / dist * force
            dx_acc[a] += fx
            dy_acc[a] += fy
            dx_acc[b] -= fx
            dy_acc[b] -= fy

        for pid in others:
            sx = dx_acc[pid] * damping
            sy = dy_acc[pid] * damping
            length = math.hypot(sx, sy)
            if length > config.max_step:
                sx = sx / length * config.max_step
                sy = sy / length * config.max_step
            xs[pid] += sx
            ys[pid] += sy
        ran += 1

    return {pid: Point(xs[pid], ys[pid]) for pid in order}, ran


def compute_layout(
    people: list[Person],
    relationships: list[Relationship],
    *,
    mode: str = "radial",
    center_id: str | None = None,
    families: FamilyIndex | None = None,
    family_id: str | None = None,
    config: LayoutConfig | None = None,
) -> LayoutResult:
    """Lay out the relationship graph (optionally restricted to one family)."""

    if mode not in LAYOUT_MODES:
        raise ValueError(f"unknown layout mode: {mode}")
    cfg = config or LayoutConfig()
    t0 = time.perf_counter()

    if families is None:
        families = FamilyIndex(detect_family_groups(people, relationships))

    if family_id is not None:
        members = families.members_of(family_id)
        people = [p for p in people if p.id in members]

    person_ids = [p.id for p in people]
    rels = _induced_relationships(person_ids, relationships)
    adj = _build_adjacency(person_ids, rels)
    center = select_center(person_ids, adj, center_id)

    result = LayoutResult(mode=mode, center_id=center)
    if center is None:
        return result

    if mode == "radial":
        result.positions = radial_layout(adj, center, cfg)
    elif mode == "hierarchical":
        result.positions = hierarchical_layout(adj, center, cfg)
    else:
        result.positions, result.iterations = force_layout(adj, center, cfg)

    result.edges = [
        LayoutEdge(
            relationship_id=r.id,
            source=r.person_a_id,
            target=r.person_b_id,
            type=r.type,
            style=edge_style(r.type),
        )
        for r in rels
    ]
    result.colors = {pid: families.color_index_for(pid) for pid in person_ids}

    log.debug(
        "layout mode=%s nodes=%d edges=%d center=%s in %.1fms",
        mode,
        len(result.positions),
        len(result.edges),
        center,
        (time.perf_counter() - t0) * 1000,
    )
    return result


def center_on(result: LayoutResult, person_id: str) -> Point | None:
    """Where the viewport should move to focus on ``person_id``."""
    return result.positions.get(person_id)
