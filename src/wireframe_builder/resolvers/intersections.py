"""Intersection resolution: split crossing lines at shared junctions.

When a new line crosses existing lines, each crossing gets one new
junction node and both lines are split there, so the wireframe stays a
proper graph (no two segments cross without a shared node).

The input structure is never mutated. Every function returns a
``ResolveResult`` holding a new structure.
"""

from __future__ import annotations

import logging
import string
from dataclasses import dataclass, field

from wireframe_builder.config import EngineConfig, resolve_config
from wireframe_builder.models.structure import Line, Node, Structure
from wireframe_builder.queries.intersection import (
    Intersection,
    distance_to_segment,
    intersect_segments,
    project_parameter,
)

logger = logging.getLogger(__name__)

# Junctions closer than this are the same junction
_JUNCTION_MERGE_DISTANCE = 1e-3


@dataclass
class LineHit:
    """An existing line crossed by a candidate line."""

    line_name: str
    intersection: Intersection


@dataclass
class ResolveResult:
    """Outcome of an intersection resolution pass."""

    structure: Structure
    line_name: str | None = None  # candidate line name (None for whole-structure passes)
    junctions: list[Node] = field(default_factory=list)
    added_lines: list[str] = field(default_factory=list)
    removed_lines: list[str] = field(default_factory=list)

    @property
    def split(self) -> bool:
        """True if any line was split."""
        return bool(self.junctions)

    def describe(self) -> str:
        if not self.junctions:
            return "No intersections"
        return (
            f"Fixed {len(self.junctions)} intersection(s): added "
            f"{', '.join(j.name for j in self.junctions)}; split "
            f"{', '.join(self.removed_lines)} into {', '.join(self.added_lines)}"
        )


def find_intersections(
    structure: Structure,
    node1: str,
    node2: str,
    config: EngineConfig | None = None,
) -> list[LineHit]:
    """Existing lines crossed by the segment node1-node2, ordered along it.

    Lines sharing an endpoint with the segment are skipped: they
    already meet at that node.
    """
    start = structure.require_node(node1).position
    end = structure.require_node(node2).position
    hits: list[LineHit] = []
    for line in structure.lines.values():
        if line.touches(node1) or line.touches(node2):
            continue
        q1, q2 = structure.segment(line.name)
        hit = intersect_segments(start, end, q1, q2, config)
        if hit is not None:
            logger.debug(
                "Intersection %s-%s x %s at (%s, %s, %s)",
                node1, node2, line.name, hit.point.x, hit.point.y, hit.point.z,
            )
            hits.append(LineHit(line_name=line.name, intersection=hit))
    hits.sort(key=lambda h: (h.intersection.t, h.line_name))
    return hits


def _piece_names(structure: Structure, base: str, count: int, reserved: set[str]) -> list[str]:
    """Names for the pieces of a split line: L3 -> L3a, L3b, ...

    Falls back to the next free ``L<k>`` when a suffixed name is taken.
    """
    names: list[str] = []
    for i in range(count):
        name = f"{base}{string.ascii_lowercase[i]}" if base and i < 26 else ""
        if not name or name in structure.lines or name in reserved or name in names:
            name = structure.allocate_line_name()
        names.append(name)
    return names


def _connect_chain(
    structure: Structure,
    chain: list[str],
    base_name: str,
    added: list[str],
) -> None:
    """Add lines along a chain of node names, naming them after base_name."""
    pairs = [(a, b) for a, b in zip(chain, chain[1:]) if a != b]
    names = _piece_names(structure, base_name, len(pairs), reserved=set())
    for (a, b), name in zip(pairs, names):
        if structure.find_line(a, b) is not None:
            continue
        line = structure.add_line(a, b, name=name)
        added.append(line.name)


def _split_line(
    structure: Structure,
    line_name: str,
    junction: str,
    added: list[str],
    removed: list[str],
) -> None:
    """Replace a line by two lines meeting at ``junction``."""
    line = structure.remove_line(line_name)
    removed.append(line.name)
    _connect_chain(structure, [line.node1, junction, line.node2], line.name, added)
    logger.info("Split %s at %s", line.name, junction)


def _junction_at(structure: Structure, hit: Intersection, created: list[Node]) -> Node:
    """Reuse a junction created in this pass at the same point, or add a new one."""
    for node in created:
        if node.position.distance_to(hit.point) < _JUNCTION_MERGE_DISTANCE:
            return node
    node = structure.add_node(hit.point.x, hit.point.y, hit.point.z)
    created.append(node)
    logger.info("Created junction %s at (%s, %s, %s)", node.name, node.x, node.y, node.z)
    return node


def _candidate_parts(structure: Structure, candidate: Line | tuple[str, str]) -> tuple[str, str, str]:
    """Validate the candidate line against the structure. Returns (node1, node2, name)."""
    if isinstance(candidate, Line):
        line = candidate
    else:
        node1, node2 = candidate
        line = Line(node1=node1, node2=node2)
    structure.require_node(line.node1)
    structure.require_node(line.node2)
    existing = structure.find_line(line.node1, line.node2)
    if existing is not None:
        raise ValueError(
            f"Line {existing.name} already connects {line.node1} and {line.node2}"
        )
    name = line.name
    if not name or name in structure.lines:
        name = structure.next_line_name()
    return line.node1, line.node2, name


def resolve_new_line(
    structure: Structure,
    candidate: Line | tuple[str, str],
    config: EngineConfig | None = None,
) -> ResolveResult:
    """Add a line, splitting it and every line it crosses at new junctions.

    Args:
        structure: Current structure (not modified).
        candidate: Line to add, or a (node1, node2) pair. An empty or
            taken name is replaced by the next free ``L<k>``.
        config: Kernel tolerances.

    Returns:
        ResolveResult with the new structure and the created junctions.

    Raises:
        ValueError: unknown endpoint, self loop, the pair is already
            connected, or the structure has dangling line references.
    """
    cfg = resolve_config(config)
    structure.check_integrity()
    work = structure.model_copy(deep=True)
    node1, node2, name = _candidate_parts(work, candidate)

    try:
        hits = find_intersections(work, node1, node2, cfg)
        if not hits:
            work.add_line(node1, node2, name=name)
            return ResolveResult(structure=work, line_name=name, added_lines=[name])

        junctions: list[Node] = []
        added: list[str] = []
        removed: list[str] = []
        chain = [node1]
        for hit in hits:
            junction = _junction_at(work, hit.intersection, junctions)
            if chain[-1] != junction.name:
                chain.append(junction.name)
            _split_line(work, hit.line_name, junction.name, added, removed)
        chain.append(node2)
        _connect_chain(work, chain, name, added)
        logger.info("Split %s-%s at %s", node1, node2, [j.name for j in junctions])
        return ResolveResult(
            structure=work,
            line_name=name,
            junctions=junctions,
            added_lines=added,
            removed_lines=removed,
        )
    except (ArithmeticError, ValueError) as exc:
        # Keep the user's line even if the geometry could not be resolved
        logger.warning(
            "Intersection resolution failed for %s-%s (%s); adding line unmodified",
            node1, node2, exc,
        )
        work = structure.model_copy(deep=True)
        work.add_line(node1, node2, name=name)
        return ResolveResult(structure=work, line_name=name, added_lines=[name])


def _first_crossing(
    structure: Structure, config: EngineConfig
) -> tuple[str, str, Intersection] | None:
    """First pair of existing lines that cross without a shared node."""
    lines = list(structure.lines.values())
    for i, line1 in enumerate(lines):
        p1, p2 = structure.segment(line1.name)
        for line2 in lines[i + 1 :]:
            if line1.shares_endpoint(line2):
                continue
            q1, q2 = structure.segment(line2.name)
            hit = intersect_segments(p1, p2, q1, q2, config)
            if hit is not None:
                return line1.name, line2.name, hit
    return None


def _lines_through(structure: Structure, node: Node, config: EngineConfig) -> list[str]:
    """Lines whose interior passes within tolerance of a node they do not end at."""
    low = config.endpoint_tolerance
    high = 1 - config.endpoint_tolerance
    names: list[str] = []
    for line in structure.lines.values():
        if line.touches(node.name):
            continue
        start, end = structure.segment(line.name)
        t = project_parameter(node.position, start, end)
        if t is None or not low <= t <= high:
            continue
        if distance_to_segment(node.position, start, end) <= config.distance_tolerance:
            names.append(line.name)
    return names


def fix_all_intersections(
    structure: Structure,
    config: EngineConfig | None = None,
) -> ResolveResult:
    """Split every pair of crossing lines already in the structure.

    Repeats until no crossing remains. Useful after bulk imports or
    node moves, which bypass ``resolve_new_line``. When more than two
    lines meet at one point, all of them are split at the same junction.
    """
    cfg = resolve_config(config)
    structure.check_integrity()
    work = structure.model_copy(deep=True)
    result = ResolveResult(structure=work)

    n = work.line_count()
    max_rounds = n * (n - 1) // 2 + 1
    for _ in range(max_rounds):
        crossing = _first_crossing(work, cfg)
        if crossing is None:
            break
        line1, line2, hit = crossing
        junction = _junction_at(work, hit, result.junctions)
        others = [
            other for other in _lines_through(work, junction, cfg) if other not in (line1, line2)
        ]
        for name in [line1, line2, *others]:
            _split_line(work, name, junction.name, result.added_lines, result.removed_lines)
    else:
        logger.warning("Stopped fixing intersections after %d rounds", max_rounds)

    # Pieces that were split again later are no longer in the structure
    result.added_lines = [name for name in result.added_lines if name in work.lines]
    result.removed_lines = [
        name for name in result.removed_lines if name in structure.lines
    ]
    return result
