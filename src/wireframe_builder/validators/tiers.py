"""Height-tier classification.

Nodes are grouped by Y (up) into three tiers:
- floor: at the lowest Y
- roof: at the highest Y
- mid: everything in between (wall tops, intermediate levels)

Two distinct Y levels means a pyramid-like shape (floor + apex or
floor + flat top). Three or more means the structure has walls.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from wireframe_builder.config import EngineConfig, resolve_config
from wireframe_builder.models.structure import Node, Structure


class Tier(str, Enum):
    FLOOR = "floor"
    MID = "mid"
    ROOF = "roof"


@dataclass
class TierMap:
    """Tier assignment for every node of a structure."""

    min_y: float = 0.0
    max_y: float = 0.0
    tolerance: float = 0.1
    floor: list[Node] = field(default_factory=list)
    mid: list[Node] = field(default_factory=list)
    roof: list[Node] = field(default_factory=list)
    levels: list[float] = field(default_factory=list)  # distinct Y levels, ascending
    _tiers: dict[str, Tier] = field(default_factory=dict, repr=False)

    @property
    def y_range(self) -> float:
        return self.max_y - self.min_y

    @property
    def has_walls(self) -> bool:
        return len(self.levels) >= 3

    @property
    def is_pyramid(self) -> bool:
        return len(self.levels) == 2

    def assign(self, node: Node, tier: Tier) -> None:
        """Put a node in a tier."""
        self.nodes_in(tier).append(node)
        self._tiers[node.name] = tier

    def tier_of(self, node_name: str) -> Tier:
        return self._tiers[node_name]

    def nodes_in(self, tier: Tier) -> list[Node]:
        return {Tier.FLOOR: self.floor, Tier.MID: self.mid, Tier.ROOF: self.roof}[tier]

    @property
    def wall_top_level(self) -> float | None:
        """Height of the highest mid-tier node (the level just below the roof)."""
        if not self.mid:
            return None
        return max(n.y for n in self.mid)

    def wall_tops(self) -> list[Node]:
        """Mid-tier nodes at the wall-top level. Roof nodes never count."""
        level = self.wall_top_level
        if level is None:
            return []
        return [n for n in self.mid if abs(n.y - level) < self.tolerance]


def _distinct_levels(values: list[float], tolerance: float) -> list[float]:
    levels: list[float] = []
    for y in sorted(values):
        if not levels or y - levels[-1] >= tolerance:
            levels.append(y)
    return levels


def classify_tiers(structure: Structure, config: EngineConfig | None = None) -> TierMap:
    """Partition the structure's nodes into floor, mid and roof tiers."""
    cfg = resolve_config(config)
    tol = cfg.level_tolerance
    nodes = list(structure.nodes.values())
    if not nodes:
        return TierMap(tolerance=tol)

    ys = [n.y for n in nodes]
    min_y, max_y = min(ys), max(ys)
    tiers = TierMap(
        min_y=min_y,
        max_y=max_y,
        tolerance=tol,
        levels=_distinct_levels(ys, tol),
    )
    flat = max_y - min_y < tol
    for node in nodes:
        if abs(node.y - min_y) < tol:
            tier = Tier.FLOOR
        elif not flat and abs(node.y - max_y) < tol:
            tier = Tier.ROOF
        else:
            tier = Tier.MID
        tiers.assign(node, tier)
    return tiers
