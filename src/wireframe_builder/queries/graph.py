"""Line adjacency graph for a structure.

Nodes = structure nodes, edges = lines. Undirected. Built on demand
from the line set; the structure itself never stores adjacency.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

from wireframe_builder.models.structure import Structure


@dataclass
class AdjacencyGraph:
    """Undirected adjacency between node names."""

    adjacency: dict[str, set[str]] = field(default_factory=dict)

    def neighbors(self, node_name: str) -> set[str]:
        return self.adjacency.get(node_name, set())

    def degree(self, node_name: str) -> int:
        return len(self.neighbors(node_name))

    def has_edge(self, node1: str, node2: str) -> bool:
        return node2 in self.neighbors(node1)

    def reachable_from(self, starts: set[str] | list[str]) -> set[str]:
        """All nodes reachable from any of the start nodes (BFS)."""
        visited = {s for s in starts if s in self.adjacency}
        queue = deque(visited)
        while queue:
            current = queue.popleft()
            for neighbor in self.adjacency[current]:
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)
        return visited

    def has_path(self, start: str, end: str) -> bool:
        """Check if a path exists between two nodes."""
        if start not in self.adjacency or end not in self.adjacency:
            return False
        return end in self.reachable_from([start])

    def components(self) -> list[set[str]]:
        """Connected components, largest first."""
        seen: set[str] = set()
        result: list[set[str]] = []
        for name in self.adjacency:
            if name in seen:
                continue
            component = self.reachable_from([name])
            seen |= component
            result.append(component)
        result.sort(key=len, reverse=True)
        return result


def build_adjacency(structure: Structure) -> AdjacencyGraph:
    """Build the adjacency graph from the structure's lines."""
    adjacency: dict[str, set[str]] = {name: set() for name in structure.nodes}
    for line in structure.lines.values():
        adjacency.setdefault(line.node1, set()).add(line.node2)
        adjacency.setdefault(line.node2, set()).add(line.node1)
    return AdjacencyGraph(adjacency=adjacency)
