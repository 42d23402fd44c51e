"""Time-range checker for testimony clips.

Classifies a clip's recorded start/end offsets. Rules are evaluated in a
fixed order and the first match wins, so each clip gets at most one
finding:

1. negative duration (high)
2. zero duration (high)
3. shorter than the minimum (medium)
4. longer than the hard maximum (high)
5. longer than the soft audit threshold (low)
6. start offset beyond any plausible recording length (medium)

The checker is pure: no I/O, no logging, no exceptions for bad data.
Values are compared unrounded.
"""

from __future__ import annotations

from typing import Any

from testimony_audit.config import DEFAULT_THRESHOLDS, ValidationThresholds
from testimony_audit.models.clip import ClipTimeRecord, coerce_seconds
from testimony_audit.validation.criteria import (
    KIND_SEVERITY,
    FindingKind,
    ValidationFinding,
)


def _label(record: ClipTimeRecord) -> str:
    if record.title:
        return f'Clip "{record.title}"'
    return f"Clip {record.id}"


class ClipTimeValidator:
    """Checks clip time ranges against validation thresholds.

    Attributes:
        thresholds: Duration and start-offset limits
    """

    def __init__(self, thresholds: ValidationThresholds | None = None):
        self.thresholds = thresholds or DEFAULT_THRESHOLDS

    def classify(self, start: float, end: float) -> FindingKind | None:
        """Return the first rule that matches a time range, if any.

        Args:
            start: Start offset in seconds
            end: End offset in seconds

        Returns:
            FindingKind of the first matching rule, or None if clean
        """
        t = self.thresholds
        duration = end - start

        if duration < 0:
            return FindingKind.NEGATIVE_DURATION
        if duration == 0:
            return FindingKind.ZERO_DURATION
        if duration < t.min_duration_seconds:
            return FindingKind.TOO_SHORT
        if duration > t.max_duration_seconds:
            return FindingKind.TOO_LONG
        if duration > t.suspicious_long_duration_seconds:
            return FindingKind.SUSPICIOUSLY_LONG
        if start > t.max_plausible_start_seconds:
            return FindingKind.START_OUT_OF_RANGE
        return None

    def validate(self, record: ClipTimeRecord) -> ValidationFinding | None:
        """Validate one clip's time range.

        Values that are missing or not finite numbers are read as 0 and
        listed under `details["coerced_fields"]`.

        Args:
            record: Clip to check

        Returns:
            ValidationFinding if the clip is flagged, None if it passes
        """
        start, start_coerced = coerce_seconds(record.start_time_seconds)
        end, end_coerced = coerce_seconds(record.end_time_seconds)

        coerced = list(record.coerced_fields)
        if start_coerced and "start_time_seconds" not in coerced:
            coerced.append("start_time_seconds")
        if end_coerced and "end_time_seconds" not in coerced:
            coerced.append("end_time_seconds")

        kind = self.classify(start, end)
        if kind is None:
            return None

        duration = end - start
        details: dict[str, Any] = {
            "start_time_seconds": start,
            "end_time_seconds": end,
            "duration_seconds": duration,
        }
        if coerced:
            details["coerced_fields"] = coerced

        message = self._describe(kind, _label(record), start, end, duration, details)

        return ValidationFinding(
            clip_id=record.id,
            kind=kind,
            severity=KIND_SEVERITY[kind],
            message=message,
            details=details,
            episode=record.episode,
            title=record.title,
        )

    def _describe(
        self,
        kind: FindingKind,
        label: str,
        start: float,
        end: float,
        duration: float,
        details: dict[str, Any],
    ) -> str:
        """Build the message for a finding and add kind-specific details."""
        t = self.thresholds

        if kind is FindingKind.NEGATIVE_DURATION:
            return (
                f"{label} ends before it starts: end {end:g}s < start {start:g}s "
                f"(duration {duration:g}s); start and end are likely swapped"
            )

        if kind is FindingKind.ZERO_DURATION:
            message = f"{label} has zero duration: start and end are both {start:g}s"
            if details.get("coerced_fields"):
                message += " (missing or non-numeric times read as 0)"
            return message

        if kind is FindingKind.TOO_SHORT:
            details["min_duration_seconds"] = t.min_duration_seconds
            return (
                f"{label} is too short: {duration:g}s < "
                f"{t.min_duration_seconds:g}s minimum"
            )

        if kind is FindingKind.TOO_LONG:
            details["max_duration_seconds"] = t.max_duration_seconds
            details["start_is_plausible"] = start <= t.max_plausible_start_seconds
            return (
                f"{label} is too long: {duration:g}s > "
                f"{t.max_duration_seconds:g}s maximum"
            )

        if kind is FindingKind.SUSPICIOUSLY_LONG:
            details["suspicious_long_duration_seconds"] = t.suspicious_long_duration_seconds
            details["max_duration_seconds"] = t.max_duration_seconds
            return (
                f"{label} is unusually long: {duration:g}s > "
                f"{t.suspicious_long_duration_seconds:g}s"
            )

        details["max_plausible_start_seconds"] = t.max_plausible_start_seconds
        return (
            f"{label} starts implausibly late: {start:g}s > "
            f"{t.max_plausible_start_seconds:g}s into the recording"
        )


def validate_clip_time(
    record: ClipTimeRecord,
    thresholds: ValidationThresholds | None = None,
) -> ValidationFinding | None:
    """Validate one clip with the given (or default) thresholds."""
    return ClipTimeValidator(thresholds).validate(record)
