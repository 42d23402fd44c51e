"""Auto-repair heuristics for flagged clip time ranges.

Rules, keyed on the finding kind:
- negative duration: swap start and end (both timestamps are kept);
  when either time was coerced the swap needs manual review
- too long, plausible start: end = start + default repair duration,
  low confidence, still needs manual review
- too long, implausible start: no proposal, manual review
- anything else: no proposal, manual review

A clip whose times were coerced from missing or non-numeric values is
never repaired automatically; a 0 there is not a real timestamp. Swaps
are still proposed for such clips, for a human to accept.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from testimony_audit.config import DEFAULT_THRESHOLDS, ValidationThresholds
from testimony_audit.validation.criteria import FindingKind, ValidationFinding


class RepairConfidence(str, Enum):
    """How much a proposal can be trusted."""

    HIGH = "high"  # pure rearrangement of recorded values
    LOW = "low"  # invented value, informational only
    NONE = "none"  # nothing proposed


@dataclass(frozen=True)
class RepairProposal:
    """Suggested correction for one flagged clip.

    Attributes:
        clip_id: Id of the clip to correct
        kind: Finding kind the proposal answers
        proposed_start_time_seconds: New start, or None if no safe repair
        proposed_end_time_seconds: New end, or None if no safe repair
        needs_manual_review: Whether a human must decide before applying
        rationale: Which rule fired and why
        confidence: Trust level of the proposed values
        original_start_time_seconds: Start as recorded
        original_end_time_seconds: End as recorded
    """

    clip_id: str
    kind: FindingKind
    proposed_start_time_seconds: float | None
    proposed_end_time_seconds: float | None
    needs_manual_review: bool
    rationale: str
    confidence: RepairConfidence
    original_start_time_seconds: float
    original_end_time_seconds: float

    @property
    def has_times(self) -> bool:
        """Whether the proposal carries a replacement time range."""
        return (
            self.proposed_start_time_seconds is not None
            and self.proposed_end_time_seconds is not None
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "clip_id": self.clip_id,
            "kind": self.kind.value,
            "proposed_start_time_seconds": self.proposed_start_time_seconds,
            "proposed_end_time_seconds": self.proposed_end_time_seconds,
            "needs_manual_review": self.needs_manual_review,
            "rationale": self.rationale,
            "confidence": self.confidence.value,
            "original_start_time_seconds": self.original_start_time_seconds,
            "original_end_time_seconds": self.original_end_time_seconds,
        }


def _manual_review(finding: ValidationFinding, rationale: str) -> RepairProposal:
    return RepairProposal(
        clip_id=finding.clip_id,
        kind=finding.kind,
        proposed_start_time_seconds=None,
        proposed_end_time_seconds=None,
        needs_manual_review=True,
        rationale=rationale,
        confidence=RepairConfidence.NONE,
        original_start_time_seconds=finding.start_time_seconds,
        original_end_time_seconds=finding.end_time_seconds,
    )


_MANUAL_ONLY_RATIONALE = {
    FindingKind.ZERO_DURATION: "zero duration, no recorded value hints at the real end time",
    FindingKind.TOO_SHORT: "too short, extending the clip would invent content",
    FindingKind.SUSPICIOUSLY_LONG: "unusually long but within limits, needs a human to judge",
    FindingKind.START_OUT_OF_RANGE: "start offset implausible, cannot infer a safe time range",
}


def propose_repair(
    finding: ValidationFinding,
    thresholds: ValidationThresholds | None = None,
) -> RepairProposal:
    """Propose a correction for one finding.

    Args:
        finding: Finding produced by the time-range checker
        thresholds: Thresholds the finding was produced with

    Returns:
        RepairProposal, possibly without times
    """
    t = thresholds or DEFAULT_THRESHOLDS
    start = finding.start_time_seconds
    end = finding.end_time_seconds

    coerced = ", ".join(finding.coerced_fields)

    if finding.kind is FindingKind.NEGATIVE_DURATION:
        rationale = "negative duration, start and end swapped"
        if coerced:
            rationale += f" ({coerced} missing or non-numeric, read as 0)"
        return RepairProposal(
            clip_id=finding.clip_id,
            kind=finding.kind,
            proposed_start_time_seconds=end,
            proposed_end_time_seconds=start,
            needs_manual_review=bool(coerced),
            rationale=rationale,
            confidence=RepairConfidence.LOW if coerced else RepairConfidence.HIGH,
            original_start_time_seconds=start,
            original_end_time_seconds=end,
        )

    if coerced:
        return _manual_review(
            finding, f"recorded times incomplete ({coerced} missing or non-numeric)"
        )

    if finding.kind is FindingKind.TOO_LONG:
        if start > t.max_plausible_start_seconds:
            return _manual_review(
                finding, "start offset implausible, cannot infer a safe end time"
            )
        return RepairProposal(
            clip_id=finding.clip_id,
            kind=finding.kind,
            proposed_start_time_seconds=start,
            proposed_end_time_seconds=start + t.default_repair_duration_seconds,
            needs_manual_review=True,
            rationale=(
                f"too long, end guessed as start + "
                f"{t.default_repair_duration_seconds:g}s (low confidence)"
            ),
            confidence=RepairConfidence.LOW,
            original_start_time_seconds=start,
            original_end_time_seconds=end,
        )

    return _manual_review(finding, _MANUAL_ONLY_RATIONALE[finding.kind])


def propose_repairs(
    findings: Iterable[ValidationFinding],
    thresholds: ValidationThresholds | None = None,
) -> list[RepairProposal]:
    """Propose corrections for findings, keeping their order."""
    return [propose_repair(finding, thresholds) for finding in findings]
