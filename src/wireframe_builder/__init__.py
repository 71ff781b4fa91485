"""Wireframe Builder: 3D wireframe structures with intersection resolution and structural validation."""

__version__ = "0.1.0"
