"""Read-only geometry and graph queries over a structure."""

from wireframe_builder.queries.graph import AdjacencyGraph, build_adjacency
from wireframe_builder.queries.intersection import (
    Intersection,
    closest_parameters,
    distance_to_segment,
    intersect_segments,
    point_at,
    project_parameter,
)

__all__ = [
    "AdjacencyGraph",
    "build_adjacency",
    "Intersection",
    "closest_parameters",
    "distance_to_segment",
    "intersect_segments",
    "point_at",
    "project_parameter",
]
