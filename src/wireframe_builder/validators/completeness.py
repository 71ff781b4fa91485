"""Missing-connection detection for rectangular house-like layouts.

Checks, in order:
- perimeter: a tier with exactly 4 corner nodes needs its 4 edges
  (front/right/back/left, from min/max X and Z)
- walls: each floor node needs a vertical line to the mid node above it
- roof: each apex (top level with <= 2 nodes) must reach every wall top
- non-rectangular floors (> 4 nodes): X-adjacent nodes on the same Z
  row should be joined (warning only)

Every missing edge is one issue naming the exact pair to add. Rotated
or non-rectangular footprints are not analysed beyond the warning pass.
"""

from __future__ import annotations

from collections import defaultdict

from wireframe_builder.config import EngineConfig, resolve_config
from wireframe_builder.models.structure import Node, Structure
from wireframe_builder.validators.issues import MissingConnection, Severity
from wireframe_builder.validators.tiers import Tier, TierMap

_PERIMETER_LABELS = {Tier.FLOOR: "Floor", Tier.MID: "Wall-top", Tier.ROOF: "Roof"}


def _corner(nodes: list[Node], x: float, z: float, tol: float) -> Node | None:
    return next((n for n in nodes if abs(n.x - x) < tol and abs(n.z - z) < tol), None)


def rectangle_corners(nodes: list[Node], tolerance: float = 0.1) -> dict[str, Node | None]:
    """Identify the corners of a 4-node axis-aligned rectangle.

    Returns front_left, front_right, back_right, back_left (front = min Z,
    left = min X). A corner is None if no node sits there.
    """
    ordered = sorted(nodes, key=lambda n: (round(n.z / tolerance), n.x))
    min_x = min(n.x for n in nodes)
    max_x = max(n.x for n in nodes)
    min_z = min(n.z for n in nodes)
    max_z = max(n.z for n in nodes)
    return {
        "front_left": _corner(ordered, min_x, min_z, tolerance),
        "front_right": _corner(ordered, max_x, min_z, tolerance),
        "back_right": _corner(ordered, max_x, max_z, tolerance),
        "back_left": _corner(ordered, min_x, max_z, tolerance),
    }


def _check_perimeter(
    structure: Structure,
    tier: Tier,
    nodes: list[Node],
    tolerance: float,
) -> list[MissingConnection]:
    issues: list[MissingConnection] = []
    corners = rectangle_corners(nodes, tolerance)
    label = _PERIMETER_LABELS[tier]
    edges = [
        (corners["front_left"], corners["front_right"], "front edge"),
        (corners["front_right"], corners["back_right"], "right edge"),
        (corners["back_right"], corners["back_left"], "back edge"),
        (corners["back_left"], corners["front_left"], "left edge"),
    ]
    for a, b, edge in edges:
        if a is None or b is None or a.name == b.name:
            continue
        if structure.find_line(a.name, b.name) is not None:
            continue
        issues.append(
            MissingConnection(
                node1=a.name,
                node2=b.name,
                role=f"{label.lower()} {edge}",
                description=(
                    f"{label} {edge} missing: {a.name} to {b.name} - "
                    f"incomplete {label.lower()} perimeter"
                ),
                suggested_fix=(
                    f"Add line connecting {a.name} to {b.name} ({label.lower()} {edge})"
                ),
            )
        )
    return issues


def _check_vertical_walls(
    structure: Structure, tiers: TierMap, tolerance: float
) -> list[MissingConnection]:
    issues: list[MissingConnection] = []
    for floor_node in tiers.floor:
        above = [
            m for m in tiers.mid
            if abs(m.x - floor_node.x) < tolerance
            and abs(m.z - floor_node.z) < tolerance
            and m.y > floor_node.y
        ]
        if not above:
            continue
        wall_top = min(above, key=lambda m: m.y)
        if structure.find_line(floor_node.name, wall_top.name) is not None:
            continue
        issues.append(
            MissingConnection(
                node1=floor_node.name,
                node2=wall_top.name,
                role="vertical wall",
                description=(
                    f"Missing vertical wall from {floor_node.name} (floor) to "
                    f"{wall_top.name} (wall-top)"
                ),
                suggested_fix=(
                    f"Add vertical wall line from {floor_node.name} to {wall_top.name}"
                ),
            )
        )
    return issues


def _check_roof_apexes(structure: Structure, tiers: TierMap) -> list[MissingConnection]:
    issues: list[MissingConnection] = []
    if not tiers.roof or tiers.wall_top_level is None:
        return issues
    if len(tiers.roof) > 2:
        return issues  # a full roof perimeter, not a peak
    wall_tops = tiers.wall_tops()
    if not wall_tops:
        return issues

    expected = 4 if len(wall_tops) == 4 else 2
    for apex in tiers.roof:
        connected = [
            w for w in wall_tops if structure.find_line(apex.name, w.name) is not None
        ]
        if len(connected) >= min(expected, len(wall_tops)):
            continue
        for wall_top in wall_tops:
            if wall_top in connected:
                continue
            issues.append(
                MissingConnection(
                    node1=apex.name,
                    node2=wall_top.name,
                    role="roof slope",
                    description=(
                        f"Roof apex {apex.name} only connects to "
                        f"{len(connected)}/{len(wall_tops)} wall-top nodes - "
                        f"missing slope to {wall_top.name}"
                    ),
                    suggested_fix=(
                        f"Add roof slope line from {apex.name} to {wall_top.name}"
                    ),
                )
            )
    return issues


def _check_floor_rows(structure: Structure, floor: list[Node]) -> list[MissingConnection]:
    """Warn about X-adjacent floor nodes on the same Z row that aren't joined."""
    issues: list[MissingConnection] = []
    rows: dict[float, list[Node]] = defaultdict(list)
    for node in floor:
        rows[round(node.z, 1)].append(node)

    for z, nodes in sorted(rows.items()):
        ordered = sorted(nodes, key=lambda n: n.x)
        for a, b in zip(ordered, ordered[1:]):
            if structure.find_line(a.name, b.name) is not None:
                continue
            issues.append(
                MissingConnection(
                    severity=Severity.WARNING,
                    node1=a.name,
                    node2=b.name,
                    role="floor edge",
                    description=f"Floor nodes {a.name} and {b.name} at z={z} are not connected",
                    suggested_fix=f"Add line connecting {a.name} to {b.name}",
                )
            )
    return issues


def validate_completeness(
    structure: Structure,
    tiers: TierMap,
    config: EngineConfig | None = None,
) -> list[MissingConnection]:
    """Find expected edges that are missing from the structure."""
    cfg = resolve_config(config)
    tol = cfg.vertical_tolerance
    issues: list[MissingConnection] = []

    for tier in (Tier.FLOOR, Tier.MID, Tier.ROOF):
        nodes = tiers.nodes_in(tier)
        if len(nodes) == 4:
            issues.extend(_check_perimeter(structure, tier, nodes, tol))

    if tiers.floor and tiers.mid:
        issues.extend(_check_vertical_walls(structure, tiers, tol))

    issues.extend(_check_roof_apexes(structure, tiers))

    if len(tiers.floor) > 4:
        issues.extend(_check_floor_rows(structure, tiers.floor))

    return issues
