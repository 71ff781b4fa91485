"""Illogical-connection detection.

A conventional building routes load floor -> wall tops -> roof. A line
from the floor straight to the roof, or diagonally from the floor to a
wall top, skips that path and is flagged critical. Purely vertical lines
(same X and Z) are supports and always legal, whatever tiers they join.

Lines spanning most of the structure's height get a warning.
"""

from __future__ import annotations

from wireframe_builder.config import EngineConfig, resolve_config
from wireframe_builder.models.structure import Node, Structure
from wireframe_builder.validators.issues import IllogicalConnection, Severity
from wireframe_builder.validators.tiers import Tier, TierMap

_TIER_LABELS = {Tier.FLOOR: "floor", Tier.MID: "wall-top", Tier.ROOF: "roof"}


def is_vertical(a: Node, b: Node, tolerance: float = 0.1) -> bool:
    """True if the segment a-b has the same X and Z within tolerance."""
    return abs(a.x - b.x) < tolerance and abs(a.z - b.z) < tolerance


def validate_connections(
    structure: Structure,
    tiers: TierMap,
    config: EngineConfig | None = None,
) -> list[IllogicalConnection]:
    """Flag lines that connect tiers illogically."""
    cfg = resolve_config(config)
    issues: list[IllogicalConnection] = []

    for line in structure.lines.values():
        n1 = structure.nodes[line.node1]
        n2 = structure.nodes[line.node2]
        t1 = tiers.tier_of(n1.name)
        t2 = tiers.tier_of(n2.name)
        vertical = is_vertical(n1, n2, cfg.vertical_tolerance)
        pair = {t1, t2}

        if not vertical and pair == {Tier.FLOOR, Tier.ROOF}:
            issues.append(
                IllogicalConnection(
                    line=line.name,
                    node1=n1.name,
                    node2=n2.name,
                    tier1=t1,
                    tier2=t2,
                    description=(
                        f"Line {line.name} connects {n1.name} ({_TIER_LABELS[t1]} at "
                        f"y={n1.y}) to {n2.name} ({_TIER_LABELS[t2]} at y={n2.y}) - "
                        f"illogical diagonal from roof to floor"
                    ),
                    suggested_fix=(
                        f"Remove {line.name}. Roof nodes should connect to wall-top "
                        f"nodes, not floor nodes."
                    ),
                )
            )
        elif not vertical and pair == {Tier.FLOOR, Tier.MID}:
            issues.append(
                IllogicalConnection(
                    line=line.name,
                    node1=n1.name,
                    node2=n2.name,
                    tier1=t1,
                    tier2=t2,
                    description=(
                        f"Line {line.name} connects {n1.name} ({_TIER_LABELS[t1]} at "
                        f"y={n1.y}) to {n2.name} ({_TIER_LABELS[t2]} at y={n2.y}) - "
                        f"illogical diagonal from wall-top to floor"
                    ),
                    suggested_fix=(
                        f"Remove {line.name}. Replace with a vertical wall and "
                        f"horizontal perimeter edges at each level."
                    ),
                )
            )

        span = abs(n1.y - n2.y)
        if (
            not vertical
            and span > tiers.y_range * cfg.large_span_ratio
            and span > cfg.large_span_min
        ):
            issues.append(
                IllogicalConnection(
                    severity=Severity.WARNING,
                    line=line.name,
                    node1=n1.name,
                    node2=n2.name,
                    tier1=t1,
                    tier2=t2,
                    large_span=True,
                    description=(
                        f"Line {line.name} spans large vertical distance ({span:.2f} units) "
                        f"from {n1.name} to {n2.name} - verify this is intentional"
                    ),
                    suggested_fix="Review if this diagonal makes structural sense",
                )
            )

    return issues
