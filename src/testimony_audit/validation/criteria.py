"""Validation data structures for clip time-range checking.

Defines the core types used to represent findings:
- Severity: triage priority with a total order (high > medium > low)
- FindingKind: closed set of reasons a time range is untrustworthy
- ValidationFinding: the single diagnosis for a flagged clip
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from testimony_audit.errors import ValidationError

# Keys every finding carries in `details`
TIME_DETAIL_KEYS = ("start_time_seconds", "end_time_seconds", "duration_seconds")


class Severity(str, Enum):
    """Triage priority of a finding.

    Members compare by rank, so `sorted(..., reverse=True)` puts high first.
    """

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_RANK = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
}


def compare_severity(a: Severity, b: Severity) -> int:
    """Three-way comparison: positive when `a` is more severe than `b`."""
    return a.rank - b.rank


class FindingKind(str, Enum):
    """Why a clip's time range was flagged, in evaluation order."""

    NEGATIVE_DURATION = "negative_duration"  # end before start, usually swapped
    ZERO_DURATION = "zero_duration"
    TOO_SHORT = "too_short"
    TOO_LONG = "too_long"
    SUSPICIOUSLY_LONG = "suspiciously_long"
    START_OUT_OF_RANGE = "start_out_of_range"


KIND_SEVERITY = {
    FindingKind.NEGATIVE_DURATION: Severity.HIGH,
    FindingKind.ZERO_DURATION: Severity.HIGH,
    FindingKind.TOO_SHORT: Severity.MEDIUM,
    FindingKind.TOO_LONG: Severity.HIGH,
    FindingKind.SUSPICIOUSLY_LONG: Severity.LOW,
    FindingKind.START_OUT_OF_RANGE: Severity.MEDIUM,
}


@dataclass
class ValidationFinding:
    """Diagnosis for one flagged clip.

    Attributes:
        clip_id: Id of the clip this finding refers to
        kind: Which rule fired
        severity: Triage priority
        message: Human-readable explanation
        details: Kind-specific payload (recorded times, duration, limits)
        episode: Source recording label, if known
        title: Clip title, if known
    """

    clip_id: str
    kind: FindingKind
    severity: Severity
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    episode: str | None = None
    title: str | None = None

    @property
    def start_time_seconds(self) -> float:
        return self.details["start_time_seconds"]

    @property
    def end_time_seconds(self) -> float:
        return self.details["end_time_seconds"]

    @property
    def duration(self) -> float:
        return self.details["duration_seconds"]

    @property
    def coerced_fields(self) -> list[str]:
        """Time fields that were missing or non-numeric and read as 0."""
        return list(self.details.get("coerced_fields", []))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "clip_id": self.clip_id,
            "kind": self.kind.value,
            "severity": self.severity.value,
            "message": self.message,
            "details": dict(self.details),
            "episode": self.episode,
            "title": self.title,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ValidationFinding":
        """Create from dictionary.

        Raises:
            ValidationError: If `details` lacks the recorded times
        """
        details = data.get("details") or {}
        missing = [key for key in TIME_DETAIL_KEYS if key not in details]
        if missing:
            raise ValidationError(
                "Finding details are missing recorded times",
                context={"clip_id": data.get("clip_id"), "missing": ", ".join(missing)},
            )

        return cls(
            clip_id=data["clip_id"],
            kind=FindingKind(data["kind"]),
            severity=Severity(data["severity"]),
            message=data["message"],
            details=details,
            episode=data.get("episode"),
            title=data.get("title"),
        )
