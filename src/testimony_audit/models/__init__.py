"""Data models for testimony-audit."""

from testimony_audit.models.clip import (
    ClipTimeRecord,
    coerce_seconds,
    normalize_clip_record,
)

__all__ = [
    "ClipTimeRecord",
    "coerce_seconds",
    "normalize_clip_record",
]
