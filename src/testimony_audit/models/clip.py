"""Clip time record for testimony-audit.

A ClipTimeRecord is the strict shape the validator works on. Documents
from the clip store use several historical field names for the same
value, so everything passes through `normalize_clip_record` first.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

# Field names seen in stored clip documents, most preferred first
START_FIELD_ALIASES = ("startTimeSeconds", "start_time_seconds", "startSec", "startTime", "start")
END_FIELD_ALIASES = ("endTimeSeconds", "end_time_seconds", "endSec", "endTime", "end")


def coerce_seconds(value: Any) -> tuple[float, bool]:
    """Coerce a raw time value to seconds.

    Numbers and numeric strings are taken as-is. Missing, non-numeric
    and non-finite values become 0 and are reported as coerced.

    Args:
        value: Raw value from a document or caller

    Returns:
        Tuple of (seconds, was_coerced)
    """
    if value is None or isinstance(value, bool):
        return 0.0, True

    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0, True
    else:
        return 0.0, True

    if not math.isfinite(number):
        return 0.0, True
    return number, False


@dataclass(frozen=True)
class ClipTimeRecord:
    """Time range of one testimony clip within its source recording.

    Attributes:
        id: Unique clip identifier
        start_time_seconds: Start offset into the source video
        end_time_seconds: End offset into the source video
        episode: Source recording label, for grouping only
        title: Clip title, for messages only
        coerced_fields: Names of time fields replaced with 0 at the boundary
    """

    id: str
    start_time_seconds: float
    end_time_seconds: float
    episode: str | None = None
    title: str | None = None
    coerced_fields: tuple[str, ...] = ()

    @property
    def duration(self) -> float:
        """Recorded duration in seconds (may be negative)."""
        return self.end_time_seconds - self.start_time_seconds

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "start_time_seconds": self.start_time_seconds,
            "end_time_seconds": self.end_time_seconds,
            "episode": self.episode,
            "title": self.title,
            "coerced_fields": list(self.coerced_fields),
        }


def _first_present(document: Mapping[str, Any], aliases: tuple[str, ...]) -> Any:
    for key in aliases:
        if key in document and document[key] is not None:
            return document[key]
    return None


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_clip_record(
    document: Mapping[str, Any],
    clip_id: str | None = None,
) -> ClipTimeRecord:
    """Adapt a loosely-shaped clip document into a ClipTimeRecord.

    Args:
        document: Raw clip document from storage
        clip_id: Document id, when it is stored outside the document body

    Returns:
        ClipTimeRecord with coerced fields recorded
    """
    record_id = clip_id if clip_id is not None else document.get("id")
    if record_id is None:
        record_id = ""

    start, start_coerced = coerce_seconds(_first_present(document, START_FIELD_ALIASES))
    end, end_coerced = coerce_seconds(_first_present(document, END_FIELD_ALIASES))

    coerced = []
    if start_coerced:
        coerced.append("start_time_seconds")
    if end_coerced:
        coerced.append("end_time_seconds")

    return ClipTimeRecord(
        id=str(record_id),
        start_time_seconds=start,
        end_time_seconds=end,
        episode=_optional_text(document.get("episode")),
        title=_optional_text(document.get("title")),
        coerced_fields=tuple(coerced),
    )
