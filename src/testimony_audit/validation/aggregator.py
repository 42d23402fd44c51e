"""Batch validation over clip collections.

Runs the time-range checker across an ordered collection and builds a
report: flagged findings in input order plus summary counts. Clips in
the caller's skip-set (already resolved) count towards `total` but are
not checked.

Reports over shards of one collection can be combined with
`merge_reports`, which restores input order using recorded positions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Collection, Iterable, Sequence

from testimony_audit.config import ValidationThresholds
from testimony_audit.models.clip import ClipTimeRecord
from testimony_audit.validation.checker import ClipTimeValidator
from testimony_audit.validation.criteria import FindingKind, Severity, ValidationFinding


def _empty_by_severity() -> dict[str, int]:
    return {severity.value: 0 for severity in Severity}


@dataclass
class ReportSummary:
    """Counts for a validation run.

    Attributes:
        total: Clips considered, including skipped ones
        flagged: Clips with a finding
        skipped: Clips excluded via the skip-set
        by_severity: Finding count per severity (all severities present)
        by_kind: Finding count per kind that occurred
    """

    total: int = 0
    flagged: int = 0
    skipped: int = 0
    by_severity: dict[str, int] = field(default_factory=_empty_by_severity)
    by_kind: dict[str, int] = field(default_factory=dict)

    @property
    def validated(self) -> int:
        """Clips actually run through the checker."""
        return self.total - self.skipped

    @property
    def clean(self) -> int:
        return self.validated - self.flagged

    def record(self, finding: ValidationFinding) -> None:
        self.flagged += 1
        self.by_severity[finding.severity.value] += 1
        self.by_kind[finding.kind.value] = self.by_kind.get(finding.kind.value, 0) + 1

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "total": self.total,
            "flagged": self.flagged,
            "skipped": self.skipped,
            "by_severity": dict(self.by_severity),
            "by_kind": dict(self.by_kind),
        }


@dataclass
class ValidationReport:
    """Result of validating a clip collection.

    Attributes:
        flagged_clips: Findings in input order
        summary: Counts for the run
        positions: Input index of each finding, parallel to flagged_clips
    """

    flagged_clips: list[ValidationFinding] = field(default_factory=list)
    summary: ReportSummary = field(default_factory=ReportSummary)
    positions: list[int] = field(default_factory=list)

    def by_severity(self, severity: Severity | str) -> list[ValidationFinding]:
        """Findings of one severity, in input order."""
        severity = Severity(severity)
        return [f for f in self.flagged_clips if f.severity is severity]

    def by_kind(self, kind: FindingKind | str) -> list[ValidationFinding]:
        """Findings of one kind, in input order."""
        kind = FindingKind(kind)
        return [f for f in self.flagged_clips if f.kind is kind]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "flagged_clips": [f.to_dict() for f in self.flagged_clips],
            "summary": self.summary.to_dict(),
        }


def batch_validate_clips(
    records: Sequence[ClipTimeRecord],
    skip_ids: Collection[str] | None = None,
    thresholds: ValidationThresholds | None = None,
    offset: int = 0,
) -> ValidationReport:
    """Validate an ordered collection of clips.

    Inputs are not modified. Each record is checked once.

    Args:
        records: Clips to validate, in the order findings should appear
        skip_ids: Ids of clips already resolved by an admin
        thresholds: Validation thresholds (defaults when omitted)
        offset: Input index of records[0], when validating a shard

    Returns:
        ValidationReport with findings and summary counts
    """
    validator = ClipTimeValidator(thresholds)
    skip = frozenset(skip_ids or ())
    report = ValidationReport()
    report.summary.total = len(records)

    for index, record in enumerate(records):
        if record.id in skip:
            report.summary.skipped += 1
            continue

        finding = validator.validate(record)
        if finding is None:
            continue

        report.flagged_clips.append(finding)
        report.positions.append(offset + index)
        report.summary.record(finding)

    return report


def merge_reports(reports: Iterable[ValidationReport]) -> ValidationReport:
    """Combine shard reports into one, restoring input order.

    Shards must have been validated with offsets relative to the full
    collection.
    """
    merged = ValidationReport()
    indexed: list[tuple[int, ValidationFinding]] = []

    for report in reports:
        merged.summary.total += report.summary.total
        merged.summary.skipped += report.summary.skipped
        indexed.extend(zip(report.positions, report.flagged_clips))

    indexed.sort(key=lambda item: item[0])
    for position, finding in indexed:
        merged.flagged_clips.append(finding)
        merged.positions.append(position)
        merged.summary.record(finding)

    return merged


def sort_by_severity(findings: Iterable[ValidationFinding]) -> list[ValidationFinding]:
    """Order findings most severe first, keeping input order within a severity."""
    return sorted(findings, key=lambda f: f.severity, reverse=True)
