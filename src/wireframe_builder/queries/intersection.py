"""3D segment geometry: closest approach and tolerant intersection.

Coordinates are typed by a human or an LLM, so two lines that "cross"
rarely meet exactly. The intersection test is tolerance based: a
near-miss within ``distance_tolerance`` still resolves to one shared
junction, and hits within ``endpoint_tolerance`` of a segment end are
ignored because a node already sits there.

Degenerate input (parallel, coincident or zero-length segments,
non-finite coordinates) returns ``None``, never raises.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from wireframe_builder.config import EngineConfig, resolve_config
from wireframe_builder.models.geometry import Point3D, PointLike

logger = logging.getLogger(__name__)


@dataclass
class Intersection:
    """A crossing between two segments."""

    point: Point3D  # midpoint of the two closest points, rounded
    t: float  # parameter along the first segment
    s: float  # parameter along the second segment
    gap: float  # distance between the two closest points


def point_at(start: PointLike, end: PointLike, t: float) -> Point3D:
    """Point at parameter ``t`` along start -> end (t=0 start, t=1 end)."""
    a = Point3D.of(start)
    b = Point3D.of(end)
    return a + (b - a).scaled(t)


def closest_parameters(
    p1: PointLike,
    p2: PointLike,
    q1: PointLike,
    q2: PointLike,
    parallel_epsilon: float = 1e-4,
) -> tuple[float, float] | None:
    """Solve the closest-approach problem for the two infinite lines.

    Normal equations for ``p1 + t*d1`` and ``q1 + s*d2``, solved by
    Cramer's rule. Returns ``(t, s)`` or ``None`` when the determinant
    is below ``parallel_epsilon``.
    """
    a_start, a_end = Point3D.of(p1), Point3D.of(p2)
    b_start, b_end = Point3D.of(q1), Point3D.of(q2)

    d1 = a_end - a_start
    d2 = b_end - b_start
    w = a_start - b_start

    a = d1.dot(d1)
    b = d1.dot(d2)
    c = d2.dot(d2)
    d = d1.dot(w)
    e = d2.dot(w)

    denom = a * c - b * b
    if not math.isfinite(denom) or abs(denom) < parallel_epsilon:
        return None

    t = (b * e - c * d) / denom
    s = (a * e - b * d) / denom
    if not (math.isfinite(t) and math.isfinite(s)):
        return None
    return t, s


def intersect_segments(
    p1: PointLike,
    p2: PointLike,
    q1: PointLike,
    q2: PointLike,
    config: EngineConfig | None = None,
) -> Intersection | None:
    """Intersect segment p1-p2 with segment q1-q2.

    Returns None for parallel lines, hits near an endpoint, and skew
    lines whose closest points are further apart than the tolerance.
    """
    cfg = resolve_config(config)
    params = closest_parameters(p1, p2, q1, q2, cfg.parallel_epsilon)
    if params is None:
        logger.debug("Segments parallel or degenerate")
        return None
    t, s = params

    low = cfg.endpoint_tolerance
    high = 1 - cfg.endpoint_tolerance
    if not (low <= t <= high and low <= s <= high):
        logger.debug("Crossing outside segment range (t=%.6f, s=%.6f)", t, s)
        return None

    on_first = point_at(p1, p2, t)
    on_second = point_at(q1, q2, s)
    gap = on_first.distance_to(on_second)
    if gap > cfg.distance_tolerance:
        logger.debug("Segments are skew (gap %.6f > %s)", gap, cfg.distance_tolerance)
        return None

    midpoint = (on_first + on_second).scaled(0.5).rounded(cfg.point_decimals)
    return Intersection(point=midpoint, t=t, s=s, gap=gap)


def project_parameter(point: PointLike, start: PointLike, end: PointLike) -> float | None:
    """Parametric position of ``point`` projected onto the line start -> end.

    Not clamped: values outside [0, 1] lie beyond the segment ends.
    Returns None for a zero-length segment.
    """
    p = Point3D.of(point)
    a = Point3D.of(start)
    d = Point3D.of(end) - a
    length_sq = d.dot(d)
    if length_sq < 1e-12:
        return None
    return (p - a).dot(d) / length_sq


def distance_to_segment(point: PointLike, start: PointLike, end: PointLike) -> float:
    """Distance from a point to the closest point of a segment."""
    p = Point3D.of(point)
    t = project_parameter(p, start, end)
    if t is None:
        return p.distance_to(Point3D.of(start))
    t = max(0.0, min(1.0, t))
    return p.distance_to(point_at(start, end, t))
