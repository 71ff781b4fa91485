"""Failure-loop circuit breaker for automated repair loops.

An LLM orchestrator calls validate, applies the suggested fix, and
validates again. The illogical-connection rule assumes a conventional
rectangular building while the grounding rule is general physics, so
for shapes like bridges they contradict each other: removing a diagonal
support makes a node float, adding it back is illogical. A caller that
fixes one issue at a time can cycle forever.

The breaker watches the report history per session and trips when:
- the same leading critical issues come back repeatedly, or
- a line configuration seen recently comes back (oscillation), which
  escalates faster than plain repetition.

A tripped decision tells the orchestrator to stop retrying and ask a
human. It is an ordinary return value, not an error.
"""

from __future__ import annotations

import json
import logging
import time
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from pydantic import BaseModel, Field

from wireframe_builder.config import EngineConfig, resolve_config
from wireframe_builder.models.structure import Line, Structure
from wireframe_builder.validators.issues import (
    Floating,
    IllogicalConnection,
    ValidationReport,
)
from wireframe_builder.validators.structure import validate_structure

logger = logging.getLogger(__name__)


@dataclass
class ValidationHistory:
    """Failure history for one session."""

    repeat_count: int = 0
    last_signature: str = ""
    snapshots: deque[str] = field(default_factory=lambda: deque(maxlen=5))
    updated_at: float = 0.0


class ValidationHistoryStore:
    """Per-session validation histories with idle eviction.

    Sessions never share a record. Call ``end_session`` when a
    conversation ends; idle sessions also expire after ``ttl_seconds``.
    """

    def __init__(
        self,
        ttl_seconds: float | None = 3600.0,
        window: int = 5,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.window = window
        self._clock = clock
        self._histories: dict[str, ValidationHistory] = {}

    def _expired(self, history: ValidationHistory, now: float) -> bool:
        return self.ttl_seconds is not None and now - history.updated_at > self.ttl_seconds

    def evict_expired(self) -> list[str]:
        """Drop idle sessions. Returns the evicted session ids."""
        now = self._clock()
        expired = [sid for sid, h in self._histories.items() if self._expired(h, now)]
        for sid in expired:
            del self._histories[sid]
        if expired:
            logger.debug("Evicted idle validation histories: %s", expired)
        return expired

    def get(self, session_id: str) -> ValidationHistory | None:
        history = self._histories.get(session_id)
        if history is not None and self._expired(history, self._clock()):
            del self._histories[session_id]
            return None
        return history

    def get_or_create(self, session_id: str) -> ValidationHistory:
        self.evict_expired()
        history = self.get(session_id)
        if history is None:
            history = ValidationHistory(snapshots=deque(maxlen=self.window))
            self._histories[session_id] = history
        history.updated_at = self._clock()
        return history

    def clear(self, session_id: str) -> None:
        """Forget a session's failures (after a successful validation)."""
        self._histories.pop(session_id, None)

    def end_session(self, session_id: str) -> None:
        self.clear(session_id)

    def __contains__(self, session_id: object) -> bool:
        return isinstance(session_id, str) and self.get(session_id) is not None

    def __len__(self) -> int:
        now = self._clock()
        return sum(1 for h in self._histories.values() if not self._expired(h, now))


class BreakerDecision(BaseModel):
    """What the orchestrator should do after a validation."""

    session_id: str
    triggered: bool = False
    repeat_count: int = 0
    oscillation: bool = False
    conflict_detected: bool = Field(
        default=False,
        description="Floating and illogical-diagonal issues at once: the rules contradict",
    )
    guidance: list[str] = Field(default_factory=list)
    report: ValidationReport

    @property
    def should_retry(self) -> bool:
        """True while automatic repair may continue."""
        return not self.report.valid and not self.triggered


def issue_signature(report: ValidationReport, count: int = 3) -> str:
    """Stable serialization of the leading critical issues.

    Node and line lists are sorted so the signature does not depend on
    line direction or discovery order.
    """
    leading = report.critical_issues()[:count]
    return json.dumps(
        [
            {
                "kind": issue.kind.value,
                "variant": issue.variant,
                "lines": sorted(issue.lines),
                "nodes": sorted(issue.nodes),
            }
            for issue in leading
        ],
        sort_keys=True,
    )


def line_set_snapshot(lines: Iterable[Line] | Structure) -> str:
    """Order-independent serialization of a line set (endpoint pairs only)."""
    if isinstance(lines, Structure):
        return lines.line_set_snapshot()
    return ",".join(sorted(line.pair_key() for line in lines))


def has_conflicting_requirements(report: ValidationReport) -> bool:
    """True when grounding and illogical-diagonal issues are both critical.

    Fixing one of them recreates the other, e.g. a bridge that needs
    diagonal supports the house rules forbid.
    """
    critical = report.critical_issues()
    floating = any(isinstance(i, Floating) for i in critical)
    diagonal = any(isinstance(i, IllogicalConnection) for i in critical)
    return floating and diagonal


def _guidance(repeat_count: int, conflict: bool) -> list[str]:
    lines = [f"Validation has failed {repeat_count} times with similar errors."]
    if conflict:
        lines += [
            "Conflicting requirements detected:",
            "  - diagonal supports are flagged as illogical connections",
            "  - the same nodes need a structural path to ground",
            "  These cannot both be satisfied. The structure is probably not a",
            "  conventional house (e.g. a bridge), where diagonal supports are valid.",
        ]
    lines += [
        "Stop retrying the same approach.",
        "Ask the user whether to keep the current design and skip house-specific",
        "validation, or to try a different structural approach.",
        "Do not delete and recreate the same lines again.",
    ]
    return lines


class CircuitBreaker:
    """Detects repeated or oscillating validation failures per session."""

    def __init__(
        self,
        store: ValidationHistoryStore | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        self.config = resolve_config(config)
        self.store = store if store is not None else ValidationHistoryStore(
            ttl_seconds=self.config.history_ttl_seconds,
            window=self.config.history_window,
        )

    def observe(
        self,
        session_id: str,
        report: ValidationReport,
        lines: Iterable[Line] | Structure,
    ) -> BreakerDecision:
        """Record a validation outcome and decide whether to stop retrying.

        Args:
            session_id: Opaque id of the conversation driving repairs.
            report: The validation report just produced.
            lines: Current line set (or the structure) it was produced for.

        Returns:
            A BreakerDecision; ``triggered`` means stop automatic retries.
        """
        cfg = self.config
        if report.valid:
            self.store.clear(session_id)
            return BreakerDecision(session_id=session_id, report=report)

        history = self.store.get_or_create(session_id)
        signature = issue_signature(report, cfg.signature_issue_count)
        snapshot = line_set_snapshot(lines)

        # Changed since the last call, yet seen before: the caller came back
        previous = history.snapshots[-1] if history.snapshots else None
        oscillation = snapshot != previous and snapshot in history.snapshots

        if oscillation:
            history.repeat_count += cfg.oscillation_penalty
            logger.warning(
                "Oscillation detected for session %s: line configuration repeated",
                session_id,
            )
        elif signature == history.last_signature:
            history.repeat_count += 1
        else:
            history.repeat_count = 1
        history.last_signature = signature
        history.snapshots.append(snapshot)

        logger.debug("Validation failure count for %s: %d", session_id, history.repeat_count)

        if history.repeat_count < cfg.breaker_threshold:
            return BreakerDecision(
                session_id=session_id,
                repeat_count=history.repeat_count,
                oscillation=oscillation,
                report=report,
            )

        conflict = has_conflicting_requirements(report)
        logger.warning(
            "Circuit breaker triggered for session %s after %d repeated failures%s",
            session_id,
            history.repeat_count,
            " (conflicting requirements)" if conflict else "",
        )
        return BreakerDecision(
            session_id=session_id,
            triggered=True,
            repeat_count=history.repeat_count,
            oscillation=oscillation,
            conflict_detected=conflict,
            guidance=_guidance(history.repeat_count, conflict),
            report=report,
        )

    def reset(self, session_id: str) -> None:
        self.store.end_session(session_id)


def validate_and_observe(
    breaker: CircuitBreaker,
    session_id: str,
    structure: Structure,
) -> BreakerDecision:
    """Validate a structure and run the result through the breaker."""
    report = validate_structure(structure, breaker.config)
    return breaker.observe(session_id, report, structure)
