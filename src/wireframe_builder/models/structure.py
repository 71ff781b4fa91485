"""Wireframe structure model: Node, Line and Structure.

A Structure owns its nodes and lines. Lines reference nodes by name,
never the reverse. Adjacency (which lines touch which node) is always
derived from the line set, never stored.

Serialized shape (JSON):
    {"name": ..., "nodes": [{name, x, y, z}], "lines": [{name, node1, node2}]}
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    Field,
    PrivateAttr,
    field_serializer,
    field_validator,
    model_validator,
)

from wireframe_builder.models.geometry import Point3D
from wireframe_builder.models.naming import NameAllocator

logger = logging.getLogger(__name__)

NODE_PREFIX = "N"
LINE_PREFIX = "L"


class Node(BaseModel):
    """A named point in 3D space (meters, Y is up).

    Identity is the name: two nodes may share coordinates.
    """

    name: str = Field(min_length=1, description="Unique node name, e.g. 'N7'")
    x: float
    y: float
    z: float

    @property
    def position(self) -> Point3D:
        return Point3D(x=self.x, y=self.y, z=self.z)

    def distance_to(self, other: Node) -> float:
        """Euclidean distance to another node."""
        return self.position.distance_to(other.position)

    def __str__(self) -> str:
        return f"{self.name}[{self.x}, {self.y}, {self.z}]"


class Line(BaseModel):
    """A segment between two distinct nodes, referenced by name.

    Stored with a direction (node1 -> node2) but semantically undirected.
    """

    name: str = Field(default="", description="Unique line name, e.g. 'L3'. Empty = auto-name")
    node1: str = Field(min_length=1)
    node2: str = Field(min_length=1)

    @model_validator(mode="after")
    def endpoints_differ(self) -> Line:
        if self.node1 == self.node2:
            raise ValueError(
                f"Line {self.name or '(unnamed)'} cannot connect node {self.node1} to itself"
            )
        return self

    @property
    def endpoints(self) -> tuple[str, str]:
        return (self.node1, self.node2)

    def touches(self, node_name: str) -> bool:
        return node_name in (self.node1, self.node2)

    def other_end(self, node_name: str) -> str:
        """The endpoint opposite to ``node_name``."""
        if node_name == self.node1:
            return self.node2
        if node_name == self.node2:
            return self.node1
        raise ValueError(f"Node {node_name} is not an endpoint of line {self.name}")

    def shares_endpoint(self, other: Line) -> bool:
        return bool(set(self.endpoints) & set(other.endpoints))

    def connects(self, node1: str, node2: str) -> bool:
        """True if this line joins the two nodes (either direction)."""
        return {self.node1, self.node2} == {node1, node2}

    def pair_key(self) -> str:
        """Order-independent endpoint key, e.g. 'N1-N2'."""
        a, b = sorted(self.endpoints)
        return f"{a}-{b}"


def _items_by_name(value: Any, kind: str) -> Any:
    """Accept the external list shape and index it by name."""
    if not isinstance(value, list):
        return value
    indexed: dict[str, Any] = {}
    for item in value:
        name = item.get("name") if isinstance(item, dict) else getattr(item, "name", None)
        if name in indexed:
            raise ValueError(f"Duplicate {kind} name '{name}'")
        indexed[name] = item
    return indexed


class Structure(BaseModel):
    """A wireframe: nodes keyed by name and lines keyed by name.

    Mutating helpers (``add_node``, ``add_line``, ``remove_node``...) keep
    the name allocators in sync; edit through them rather than touching
    the dicts directly.
    """

    name: str = Field(default="Untitled Structure")
    nodes: dict[str, Node] = Field(default_factory=dict)
    lines: dict[str, Line] = Field(default_factory=dict)

    _node_names: NameAllocator = PrivateAttr()
    _line_names: NameAllocator = PrivateAttr()

    @field_validator("nodes", mode="before")
    @classmethod
    def index_nodes(cls, v: Any) -> Any:
        return _items_by_name(v, "node")

    @field_validator("lines", mode="before")
    @classmethod
    def index_lines(cls, v: Any) -> Any:
        return _items_by_name(v, "line")

    @model_validator(mode="after")
    def check_references(self) -> Structure:
        self.check_integrity()
        return self

    def check_integrity(self) -> None:
        """Raise ValueError on mismatched keys, self loops or dangling line references."""
        for key, node in self.nodes.items():
            if key != node.name:
                raise ValueError(f"Node key '{key}' does not match node name '{node.name}'")
        for key, line in self.lines.items():
            if not line.name:
                raise ValueError(f"Line between {line.node1} and {line.node2} has no name")
            if key != line.name:
                raise ValueError(f"Line key '{key}' does not match line name '{line.name}'")
            if line.node1 == line.node2:
                raise ValueError(f"Line {line.name} connects node {line.node1} to itself")
            missing = [n for n in line.endpoints if n not in self.nodes]
            if missing:
                raise ValueError(
                    f"Line {line.name} references non-existent node(s) {missing}"
                )

    def model_post_init(self, __context: Any) -> None:
        self._node_names = NameAllocator(NODE_PREFIX, self.nodes)
        self._line_names = NameAllocator(LINE_PREFIX, self.lines)

    @field_serializer("nodes")
    def dump_nodes(self, nodes: dict[str, Node]) -> list[dict]:
        return [node.model_dump() for node in nodes.values()]

    @field_serializer("lines")
    def dump_lines(self, lines: dict[str, Line]) -> list[dict]:
        return [line.model_dump() for line in lines.values()]

    # ── File I/O ──────────────────────────────────────────────────────

    @classmethod
    def load(cls, path: str | Path) -> Structure:
        """Load a structure from a JSON file."""
        path = Path(path)
        return cls.model_validate_json(path.read_text())

    def save(self, path: str | Path) -> Path:
        """Save the structure to a JSON file. Creates parent dirs if needed."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2))
        return path

    # ── Lookups ───────────────────────────────────────────────────────

    def get_node(self, name: str) -> Node | None:
        return self.nodes.get(name)

    def get_line(self, name: str) -> Line | None:
        return self.lines.get(name)

    def require_node(self, name: str) -> Node:
        """Get a node by name or raise ValueError."""
        node = self.nodes.get(name)
        if node is None:
            available = sorted(self.nodes)
            raise ValueError(f"Node '{name}' does not exist. Available: {available}")
        return node

    def require_line(self, name: str) -> Line:
        """Get a line by name or raise ValueError."""
        line = self.lines.get(name)
        if line is None:
            available = sorted(self.lines)
            raise ValueError(f"Line '{name}' does not exist. Available: {available}")
        return line

    def find_line(self, node1: str, node2: str) -> Line | None:
        """The line joining two nodes in either direction, if any."""
        return next((l for l in self.lines.values() if l.connects(node1, node2)), None)

    def lines_at(self, node_name: str) -> list[Line]:
        """All lines touching a node."""
        return [l for l in self.lines.values() if l.touches(node_name)]

    def neighbors(self, node_name: str) -> set[str]:
        """Names of nodes joined to ``node_name`` by a line."""
        return {l.other_end(node_name) for l in self.lines_at(node_name)}

    def segment(self, line_name: str) -> tuple[Point3D, Point3D]:
        """Endpoint coordinates of a line."""
        line = self.require_line(line_name)
        return (self.nodes[line.node1].position, self.nodes[line.node2].position)

    def line_length(self, line_name: str) -> float:
        """Euclidean length of a line (derived, never stored)."""
        start, end = self.segment(line_name)
        return start.distance_to(end)

    def line_set_snapshot(self) -> str:
        """Order-independent serialization of which node pairs are joined."""
        return ",".join(sorted(l.pair_key() for l in self.lines.values()))

    # ── Naming ────────────────────────────────────────────────────────

    def next_node_name(self) -> str:
        return self._node_names.peek()

    def next_line_name(self) -> str:
        return self._line_names.peek()

    def allocate_node_name(self) -> str:
        """Reserve the lowest unused ``N<k>``."""
        return self._node_names.allocate()

    def allocate_line_name(self) -> str:
        """Reserve the lowest unused ``L<k>``."""
        return self._line_names.allocate()

    # ── Edit ──────────────────────────────────────────────────────────

    def add_node(
        self,
        x: float,
        y: float,
        z: float,
        name: str | None = None,
    ) -> Node:
        """Add a node. Auto-names it ``N<k>`` when no name (or a taken one) is given."""
        if name and name in self.nodes:
            logger.debug("Node name %s already exists, auto-naming", name)
            name = None
        if not name:
            name = self._node_names.allocate()
        node = Node(name=name, x=x, y=y, z=z)
        self.nodes[name] = node
        self._node_names.claim(name)
        return node

    def add_line(self, node1: str, node2: str, name: str | None = None) -> Line:
        """Connect two existing nodes. Returns the created line.

        Rejects unknown nodes, self loops, and a second line between
        the same pair. No intersection resolution happens here; see
        ``wireframe_builder.resolvers.resolve_new_line``.
        """
        if node1 == node2:
            raise ValueError(f"Cannot create a line from a node to itself ({node1})")
        self.require_node(node1)
        self.require_node(node2)
        existing = self.find_line(node1, node2)
        if existing is not None:
            raise ValueError(f"Line {existing.name} already connects {node1} and {node2}")
        if name and name in self.lines:
            logger.debug("Line name %s already exists, auto-naming", name)
            name = None
        if not name:
            name = self._line_names.allocate()
        line = Line(name=name, node1=node1, node2=node2)
        self.lines[name] = line
        self._line_names.claim(name)
        return line

    def remove_line(self, name: str) -> Line:
        """Remove a line by name. Returns the removed line."""
        line = self.require_line(name)
        del self.lines[name]
        self._line_names.release(name)
        return line

    def remove_node(self, name: str) -> list[str]:
        """Remove a node and every line touching it. Returns removed line names."""
        self.require_node(name)
        removed = [l.name for l in self.lines_at(name)]
        for line_name in removed:
            self.remove_line(line_name)
        del self.nodes[name]
        self._node_names.release(name)
        return removed

    def move_node(
        self,
        name: str,
        x: float | None = None,
        y: float | None = None,
        z: float | None = None,
    ) -> Node:
        """Move a node. Lines follow automatically since they reference names."""
        node = self.require_node(name)
        updates = {k: v for k, v in (("x", x), ("y", y), ("z", z)) if v is not None}
        moved = node.model_copy(update=updates)
        self.nodes[name] = moved
        return moved

    # ── Query helpers ─────────────────────────────────────────────────

    def node_count(self) -> int:
        return len(self.nodes)

    def line_count(self) -> int:
        return len(self.lines)

    def to_data(self) -> dict:
        """Plain-data form used by the external collaborators."""
        return self.model_dump(mode="json")

    def summary(self) -> str:
        """Human-readable summary of the structure."""
        out = [f"{self.name}", f"   Nodes: {self.node_count()}", f"   Lines: {self.line_count()}"]
        for node in self.nodes.values():
            out.append(f"   {node}")
        for line in self.lines.values():
            out.append(
                f"   {line.name}[{line.node1}, {line.node2}] - "
                f"{self.line_length(line.name):.3f}m"
            )
        return "\n".join(out)
