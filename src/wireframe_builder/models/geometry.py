"""Geometric primitives for wireframe structures."""

from __future__ import annotations

import math
from typing import Union

from pydantic import BaseModel


class Point3D(BaseModel):
    """3D point (meters). Y is up."""

    x: float
    y: float
    z: float

    @classmethod
    def of(cls, value: PointLike) -> Point3D:
        """Coerce a Point3D, a Node-like object or an (x, y, z) triple."""
        if isinstance(value, Point3D):
            return value
        if hasattr(value, "x") and hasattr(value, "y") and hasattr(value, "z"):
            return cls(x=value.x, y=value.y, z=value.z)
        x, y, z = value
        return cls(x=x, y=y, z=z)

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def distance_to(self, other: Point3D) -> float:
        """Euclidean distance to another point."""
        return math.sqrt(
            (self.x - other.x) ** 2
            + (self.y - other.y) ** 2
            + (self.z - other.z) ** 2
        )

    def horizontal_distance_to(self, other: Point3D) -> float:
        """Distance in the XZ plane (ignores height)."""
        return math.sqrt((self.x - other.x) ** 2 + (self.z - other.z) ** 2)

    def __sub__(self, other: Point3D) -> Point3D:
        return Point3D(x=self.x - other.x, y=self.y - other.y, z=self.z - other.z)

    def __add__(self, other: Point3D) -> Point3D:
        return Point3D(x=self.x + other.x, y=self.y + other.y, z=self.z + other.z)

    def scaled(self, factor: float) -> Point3D:
        return Point3D(x=self.x * factor, y=self.y * factor, z=self.z * factor)

    def dot(self, other: Point3D) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def rounded(self, decimals: int = 3) -> Point3D:
        return Point3D(
            x=round(self.x, decimals),
            y=round(self.y, decimals),
            z=round(self.z, decimals),
        )

    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (self.x, self.y, self.z))


PointLike = Union[Point3D, tuple[float, float, float], list[float]]
