"""Validation module for clip time-range checking.

This module provides the per-clip checker, the finding types it emits,
and batch aggregation into triage reports.
"""

from testimony_audit.validation.criteria import (
    FindingKind,
    Severity,
    ValidationFinding,
    compare_severity,
)
from testimony_audit.validation.checker import ClipTimeValidator, validate_clip_time
from testimony_audit.validation.aggregator import (
    ReportSummary,
    ValidationReport,
    batch_validate_clips,
    merge_reports,
    sort_by_severity,
)

__all__ = [
    "FindingKind",
    "Severity",
    "ValidationFinding",
    "compare_severity",
    "ClipTimeValidator",
    "validate_clip_time",
    "ReportSummary",
    "ValidationReport",
    "batch_validate_clips",
    "merge_reports",
    "sort_by_severity",
]
