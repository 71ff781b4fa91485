"""Gravity / grounding analysis.

Every node must have a structural path to the floor. Grounding starts
at the floor tier and spreads along lines; whatever is left is floating
(e.g. a roof with no walls under it).
"""

from __future__ import annotations

import logging

from wireframe_builder.config import EngineConfig, resolve_config
from wireframe_builder.models.structure import Node, Structure
from wireframe_builder.queries.graph import AdjacencyGraph, build_adjacency
from wireframe_builder.validators.issues import Floating
from wireframe_builder.validators.tiers import TierMap

logger = logging.getLogger(__name__)


def grounded_nodes(
    structure: Structure,
    tiers: TierMap,
    graph: AdjacencyGraph | None = None,
) -> set[str]:
    """Names of all nodes with a path to any floor node."""
    if graph is None:
        graph = build_adjacency(structure)

    grounded = graph.reachable_from([n.name for n in tiers.floor])

    # Relax until stable: a node with a grounded neighbor is grounded
    changed = True
    while changed:
        changed = False
        for name in structure.nodes:
            if name in grounded:
                continue
            if graph.neighbors(name) & grounded:
                grounded.add(name)
                changed = True
    return grounded


def _nearest_floor_node(node: Node, floor: list[Node]) -> Node | None:
    if not floor:
        return None
    return min(floor, key=lambda f: (node.position.horizontal_distance_to(f.position), f.name))


def validate_grounding(
    structure: Structure,
    tiers: TierMap,
    config: EngineConfig | None = None,
    graph: AdjacencyGraph | None = None,
) -> list[Floating]:
    """Report every node with no structural path to ground."""
    cfg = resolve_config(config)
    grounded = grounded_nodes(structure, tiers, graph)
    issues: list[Floating] = []

    for node in structure.nodes.values():
        if node.name in grounded:
            continue
        nearest = _nearest_floor_node(node, tiers.floor)
        support = None
        if (
            nearest is not None
            and abs(node.x - nearest.x) < cfg.vertical_tolerance
            and abs(node.z - nearest.z) < cfg.vertical_tolerance
        ):
            support = nearest.name

        if support:
            fix = f"Add vertical support from {support} (floor) to {node.name}"
        else:
            fix = f"Add vertical support connecting {node.name} to a grounded node or floor"
        issues.append(
            Floating(
                node=node.name,
                position=node.position,
                support_from=support,
                description=(
                    f"Node {node.name} at ({node.x}, {node.y}, {node.z}) has no "
                    f"structural path to ground - floating structure"
                ),
                suggested_fix=fix,
            )
        )

    if issues:
        logger.debug("Floating nodes: %s", [i.node for i in issues])
    return issues
