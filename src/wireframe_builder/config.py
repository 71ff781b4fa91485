"""Engine tolerances and limits.

All values are in structure units (meters) unless stated otherwise.
Every public engine function accepts an optional ``EngineConfig``;
``None`` means the defaults below.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class EngineConfig(BaseModel):
    """Tolerances for the geometric kernel, validator and circuit breaker."""

    # Geometric kernel
    parallel_epsilon: float = Field(
        default=1e-4, gt=0, description="Below this |determinant| segments count as parallel"
    )
    endpoint_tolerance: float = Field(
        default=0.005,
        ge=0,
        lt=0.5,
        description="Reject hits within this fraction of either segment end",
    )
    distance_tolerance: float = Field(
        default=0.5, gt=0, description="Max gap between closest points of crossing segments"
    )
    point_decimals: int = Field(default=3, ge=0, description="Rounding of junction coordinates")

    # Structural validator
    level_tolerance: float = Field(
        default=0.1, gt=0, description="Y distance treated as the same height tier"
    )
    vertical_tolerance: float = Field(
        default=0.1, gt=0, description="X/Z distance treated as a vertical line"
    )
    large_span_ratio: float = Field(
        default=0.8, gt=0, description="Fraction of the Y range flagged as a large span"
    )
    large_span_min: float = Field(default=2.0, ge=0, description="Minimum Y span for the warning")

    # Circuit breaker
    breaker_threshold: int = Field(default=3, ge=1, description="repeat_count that trips the breaker")
    signature_issue_count: int = Field(
        default=3, ge=1, description="Leading critical issues in the signature"
    )
    history_window: int = Field(default=5, ge=1, description="Line-set snapshots kept per session")
    oscillation_penalty: int = Field(
        default=2, ge=1, description="repeat_count increment when a line set comes back"
    )
    history_ttl_seconds: float | None = Field(
        default=3600.0, description="Idle sessions are evicted after this; None keeps them"
    )


DEFAULT_CONFIG = EngineConfig()


def resolve_config(config: EngineConfig | None) -> EngineConfig:
    """Return ``config`` or the shared defaults."""
    return config if config is not None else DEFAULT_CONFIG
