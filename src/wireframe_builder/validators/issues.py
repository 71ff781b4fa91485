"""Structural issue types and the validation report.

Issues are data, never exceptions: the caller decides whether and how
to repair. Each issue variant carries only the fields it needs and
serializes with the common ``kind / severity / nodes / lines /
description / suggested_fix`` shape.

Variants:
    IllogicalConnection: a line that skips the intermediate tier
    MissingConnection:   an edge that should exist (exact node pair)
    Floating:            a node with no path to the floor
"""

from __future__ import annotations

from collections import Counter
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, computed_field

from wireframe_builder.models.geometry import Point3D
from wireframe_builder.validators.tiers import Tier


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"


class IssueKind(str, Enum):
    ILLOGICAL_CONNECTION = "illogical_connection"
    MISSING_CONNECTION = "missing_connection"


class _Issue(BaseModel):
    severity: Severity = Severity.CRITICAL
    description: str
    suggested_fix: str = ""

    @property
    def is_critical(self) -> bool:
        return self.severity == Severity.CRITICAL


class IllogicalConnection(_Issue):
    """A non-vertical line from the floor straight to the roof or a wall top."""

    variant: Literal["illogical_connection"] = "illogical_connection"
    line: str
    node1: str
    node2: str
    tier1: Tier
    tier2: Tier
    large_span: bool = False

    @computed_field
    @property
    def kind(self) -> IssueKind:
        return IssueKind.ILLOGICAL_CONNECTION

    @computed_field
    @property
    def nodes(self) -> list[str]:
        return [self.node1, self.node2]

    @computed_field
    @property
    def lines(self) -> list[str]:
        return [self.line]


class MissingConnection(_Issue):
    """An expected edge between two nodes that is not present."""

    variant: Literal["missing_connection"] = "missing_connection"
    node1: str
    node2: str
    role: str = Field(description="What the edge is, e.g. 'floor front edge', 'roof slope'")

    @computed_field
    @property
    def kind(self) -> IssueKind:
        return IssueKind.MISSING_CONNECTION

    @computed_field
    @property
    def nodes(self) -> list[str]:
        return [self.node1, self.node2]

    @computed_field
    @property
    def lines(self) -> list[str]:
        return []


class Floating(_Issue):
    """A node with no structural path to any floor node."""

    variant: Literal["floating"] = "floating"
    node: str
    position: Point3D
    support_from: str | None = Field(
        default=None, description="Floor node directly below, if one shares the X/Z"
    )

    @computed_field
    @property
    def kind(self) -> IssueKind:
        return IssueKind.MISSING_CONNECTION

    @computed_field
    @property
    def nodes(self) -> list[str]:
        return [self.node]

    @computed_field
    @property
    def lines(self) -> list[str]:
        return []


StructuralIssue = Annotated[
    Union[IllogicalConnection, MissingConnection, Floating],
    Field(discriminator="variant"),
]


class ValidationSummary(BaseModel):
    """Counts per category for one validation pass."""

    total_nodes: int = 0
    total_lines: int = 0
    floor_nodes: int = 0
    mid_nodes: int = 0
    roof_nodes: int = 0
    critical: int = 0
    warnings: int = 0
    by_kind: dict[str, int] = Field(default_factory=dict)


class ValidationReport(BaseModel):
    """Result of one validation pass. Not persisted; recomputed each time."""

    valid: bool
    issues: list[StructuralIssue] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    summary: ValidationSummary = Field(default_factory=ValidationSummary)

    @classmethod
    def from_issues(
        cls,
        issues: list,
        summary: ValidationSummary,
        suggestions: list[str] | None = None,
    ) -> ValidationReport:
        """Build a report; validity and counts follow from the issues."""
        critical = [i for i in issues if i.is_critical]
        summary = summary.model_copy(
            update={
                "critical": len(critical),
                "warnings": len(issues) - len(critical),
                "by_kind": dict(Counter(i.variant for i in issues)),
            }
        )
        return cls(
            valid=not critical,
            issues=issues,
            suggestions=suggestions or [],
            summary=summary,
        )

    def critical_issues(self) -> list:
        return [i for i in self.issues if i.is_critical]

    def warnings(self) -> list:
        return [i for i in self.issues if not i.is_critical]

    def floating(self) -> list[Floating]:
        return [i for i in self.issues if isinstance(i, Floating)]

    def illogical(self) -> list[IllogicalConnection]:
        return [i for i in self.issues if isinstance(i, IllogicalConnection)]

    def missing(self) -> list[MissingConnection]:
        return [i for i in self.issues if isinstance(i, MissingConnection)]

    @property
    def message(self) -> str:
        if self.valid:
            extra = f" ({self.summary.warnings} warnings)" if self.summary.warnings else ""
            return f"Structure validated successfully{extra}"
        return (
            f"Found {self.summary.critical} critical error(s) and "
            f"{self.summary.warnings} warning(s)"
        )
