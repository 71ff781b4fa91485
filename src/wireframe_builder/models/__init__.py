"""Wireframe data models."""

from wireframe_builder.models.geometry import Point3D
from wireframe_builder.models.naming import NameAllocator
from wireframe_builder.models.structure import Line, Node, Structure

__all__ = [
    "Point3D",
    "NameAllocator",
    "Node",
    "Line",
    "Structure",
]
