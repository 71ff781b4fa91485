"""Structural validation entry point.

Runs the four passes and merges their results into one report:
1. tiers: floor / mid / roof classification by height
2. connections: illogical tier-skipping lines
3. completeness: missing perimeter, wall and roof edges
4. gravity: nodes with no path to the floor

The report is valid when no issue is critical. Input errors (dangling
line references, self loops) raise ValueError instead of producing a
report.
"""

from __future__ import annotations

import logging

from wireframe_builder.config import EngineConfig, resolve_config
from wireframe_builder.models.structure import Structure
from wireframe_builder.queries.graph import build_adjacency
from wireframe_builder.validators.completeness import validate_completeness
from wireframe_builder.validators.connections import validate_connections
from wireframe_builder.validators.gravity import validate_grounding
from wireframe_builder.validators.issues import (
    Floating,
    MissingConnection,
    ValidationReport,
    ValidationSummary,
)
from wireframe_builder.validators.tiers import classify_tiers

logger = logging.getLogger(__name__)


def _suggestions(issues: list) -> list[str]:
    suggestions: list[str] = []
    for issue in issues:
        if isinstance(issue, MissingConnection):
            suggestions.append(f"Add line from {issue.node1} to {issue.node2} ({issue.role})")
        elif isinstance(issue, Floating) and issue.support_from:
            suggestions.append(
                f"Add vertical support from {issue.support_from} (floor) to {issue.node}"
            )
    return suggestions


def validate_structure(
    structure: Structure,
    config: EngineConfig | None = None,
) -> ValidationReport:
    """Validate a structure for logical and structural correctness."""
    cfg = resolve_config(config)
    structure.check_integrity()

    if not structure.nodes:
        return ValidationReport(valid=True)

    tiers = classify_tiers(structure, cfg)
    logger.debug(
        "Tiers: floor=%s mid=%s roof=%s",
        [n.name for n in tiers.floor],
        [n.name for n in tiers.mid],
        [n.name for n in tiers.roof],
    )

    issues: list = []
    issues.extend(validate_connections(structure, tiers, cfg))
    issues.extend(validate_completeness(structure, tiers, cfg))
    issues.extend(validate_grounding(structure, tiers, cfg, graph=build_adjacency(structure)))

    summary = ValidationSummary(
        total_nodes=structure.node_count(),
        total_lines=structure.line_count(),
        floor_nodes=len(tiers.floor),
        mid_nodes=len(tiers.mid),
        roof_nodes=len(tiers.roof),
    )
    report = ValidationReport.from_issues(issues, summary, _suggestions(issues))
    logger.info(report.message)
    return report
