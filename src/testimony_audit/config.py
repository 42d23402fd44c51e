"""Configuration loading and management for testimony-audit.

Holds the validation thresholds shared by the validator, the batch
aggregator and the repair heuristics. Thresholds come from defaults,
an optional JSON file, and `TESTIMONY_AUDIT_*` environment variables.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, model_validator

from testimony_audit.errors import ConfigurationError
from testimony_audit.storage import atomic_write

MIN_DURATION_SECONDS = 5.0
MAX_DURATION_SECONDS = 1800.0  # 30 minutes
SUSPICIOUS_LONG_DURATION_SECONDS = 900.0  # 15 minutes
MAX_PLAUSIBLE_START_SECONDS = 10800.0  # 3 hours into the source recording
DEFAULT_REPAIR_DURATION_SECONDS = 300.0  # typical testimony runs 2-5 minutes

ENV_PREFIX = "TESTIMONY_AUDIT_"


class ValidationThresholds(BaseModel):
    """Numeric policy for clip time-range validation and repair.

    The hard limits (`min_duration_seconds`, `max_duration_seconds`) match
    the clip-creation gate. `suspicious_long_duration_seconds` is a softer
    audit-only threshold for clips that are long but not invalid.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    min_duration_seconds: float = Field(default=MIN_DURATION_SECONDS, gt=0)
    max_duration_seconds: float = Field(default=MAX_DURATION_SECONDS, gt=0)
    suspicious_long_duration_seconds: float = Field(
        default=SUSPICIOUS_LONG_DURATION_SECONDS, gt=0
    )
    max_plausible_start_seconds: float = Field(default=MAX_PLAUSIBLE_START_SECONDS, gt=0)
    default_repair_duration_seconds: float = Field(
        default=DEFAULT_REPAIR_DURATION_SECONDS, gt=0
    )

    @model_validator(mode="after")
    def _check_ordering(self) -> "ValidationThresholds":
        if not (
            self.min_duration_seconds
            < self.suspicious_long_duration_seconds
            < self.max_duration_seconds
        ):
            raise ValueError(
                "thresholds must satisfy min_duration_seconds < "
                "suspicious_long_duration_seconds < max_duration_seconds"
            )
        if not (
            self.min_duration_seconds
            <= self.default_repair_duration_seconds
            <= self.max_duration_seconds
        ):
            raise ValueError(
                "default_repair_duration_seconds must lie within the valid duration window"
            )
        return self


DEFAULT_THRESHOLDS = ValidationThresholds()


def build_thresholds(**overrides: float) -> ValidationThresholds:
    """Create thresholds from keyword overrides.

    Raises:
        ConfigurationError: If the resulting thresholds are invalid
    """
    try:
        return ValidationThresholds(**overrides)
    except PydanticValidationError as e:
        raise ConfigurationError(
            "Invalid validation thresholds",
            context={"errors": "; ".join(err["msg"] for err in e.errors())},
        ) from e


def thresholds_from_env(
    environ: Mapping[str, str] | None = None,
    base: ValidationThresholds | None = None,
) -> ValidationThresholds:
    """Apply `TESTIMONY_AUDIT_<FIELD>` environment overrides.

    Args:
        environ: Environment mapping (defaults to os.environ)
        base: Thresholds to override (defaults to the built-in defaults)

    Returns:
        ValidationThresholds with overrides applied
    """
    environ = os.environ if environ is None else environ
    values = (base or DEFAULT_THRESHOLDS).model_dump()

    for name in ValidationThresholds.model_fields:
        raw = environ.get(ENV_PREFIX + name.upper())
        if raw is None or raw.strip() == "":
            continue
        try:
            values[name] = float(raw)
        except ValueError as e:
            raise ConfigurationError(
                f"Environment override {ENV_PREFIX + name.upper()} is not a number",
                context={"value": raw},
            ) from e

    return build_thresholds(**values)


def load_thresholds(path: Path) -> ValidationThresholds:
    """Load thresholds from a JSON file.

    Missing keys keep their defaults.

    Raises:
        ConfigurationError: If the file is missing, not JSON, or invalid
    """
    if not path.exists():
        raise ConfigurationError(f"Thresholds file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in thresholds file: {path}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Thresholds file must hold a JSON object: {path}")

    return build_thresholds(**data)


def save_thresholds(path: Path, thresholds: ValidationThresholds) -> Path:
    """Save thresholds to a JSON file with atomic write.

    Returns:
        Path to the saved file

    Raises:
        StorageError: If the file cannot be written
    """
    atomic_write(path, json.dumps(thresholds.model_dump(), indent=2))
    return path


def resolve_thresholds(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ValidationThresholds:
    """Resolve thresholds: defaults, then file, then environment."""
    base = load_thresholds(config_path) if config_path else DEFAULT_THRESHOLDS
    return thresholds_from_env(environ, base=base)
