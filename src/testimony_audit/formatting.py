"""Display helpers for clip times.

Formatting truncates fractional seconds; validation never rounds.
"""

from __future__ import annotations


def format_timestamp(seconds: float) -> str:
    """Format an offset as "H:MM:SS" or "M:SS".

    Args:
        seconds: Offset into the source recording

    Returns:
        Formatted string like "1:02:03" or "4:05"
    """
    if seconds < 0:
        return "-" + format_timestamp(-seconds)

    total = int(seconds)
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_signed_duration(seconds: float) -> str:
    """Format a duration as "1h 2m 3s", keeping the sign.

    Negative durations (swapped start/end) get a leading "-".
    """
    total = int(abs(seconds))
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60

    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 or not parts:
        parts.append(f"{secs}s")

    result = " ".join(parts)
    if seconds < 0 and total > 0:
        return f"-{result}"
    return result
