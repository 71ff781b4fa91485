"""Structural validation for wireframe structures.

Passes (merged by ``validate_structure``):
- tiers: floor / mid / roof classification by height
- connections: illogical tier-skipping lines
- completeness: missing perimeter, wall and roof edges
- gravity: floating nodes with no path to the floor

Repair-loop protection:
- breaker: failure-loop circuit breaker per session
"""

from wireframe_builder.validators.breaker import (
    BreakerDecision,
    CircuitBreaker,
    ValidationHistory,
    ValidationHistoryStore,
    issue_signature,
    validate_and_observe,
)
from wireframe_builder.validators.issues import (
    Floating,
    IllogicalConnection,
    IssueKind,
    MissingConnection,
    Severity,
    StructuralIssue,
    ValidationReport,
    ValidationSummary,
)
from wireframe_builder.validators.structure import validate_structure
from wireframe_builder.validators.tiers import Tier, TierMap, classify_tiers

__all__ = [
    "BreakerDecision",
    "CircuitBreaker",
    "ValidationHistory",
    "ValidationHistoryStore",
    "issue_signature",
    "validate_and_observe",
    "Floating",
    "IllogicalConnection",
    "IssueKind",
    "MissingConnection",
    "Severity",
    "StructuralIssue",
    "ValidationReport",
    "ValidationSummary",
    "validate_structure",
    "Tier",
    "TierMap",
    "classify_tiers",
]
