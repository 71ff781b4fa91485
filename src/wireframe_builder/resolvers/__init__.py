"""Structure edits that keep the wireframe a proper graph."""

from wireframe_builder.resolvers.intersections import (
    LineHit,
    ResolveResult,
    find_intersections,
    fix_all_intersections,
    resolve_new_line,
)

__all__ = [
    "LineHit",
    "ResolveResult",
    "find_intersections",
    "fix_all_intersections",
    "resolve_new_line",
]
