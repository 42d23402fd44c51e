"""File-backed clip store for testimony-audit.

Stands in for the clip document collection: a JSON file holding a list of
clip documents, each with an `id`. Provides the records to validate, the
skip-set of already-resolved clips, and audited write-back of accepted
repairs.
"""

from __future__ import annotations

import copy
import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from testimony_audit.errors import ResourceError, ValidationError
from testimony_audit.logging import get_logger
from testimony_audit.models.clip import ClipTimeRecord, normalize_clip_record

if TYPE_CHECKING:
    from testimony_audit.repair.heuristics import RepairProposal

logger = get_logger(__name__)

REPAIR_HISTORY_FIELD = "timeRepairs"
_REVIEW_STATE_FIELDS = (
    "validationStatus",
    "manuallyReviewed",
    "reprocessingStatus",
    "reviewedAt",
    "reviewedBy",
)


class StorageError(ResourceError):
    """Base exception for storage operations."""


class NotFoundError(StorageError):
    """Raised when a requested clip or file is not found."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def atomic_write(path: Path, data: str, encoding: str = "utf-8") -> None:
    """Write data to a file atomically.

    Writes to a temporary file in the same directory, then renames to target.

    Raises:
        StorageError: If the write operation fails
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    temp_path = None
    try:
        fd, temp_path = tempfile.mkstemp(
            suffix=".tmp",
            prefix=path.stem + "_",
            dir=path.parent,
        )
        os.write(fd, data.encode(encoding))
        os.fsync(fd)
        os.close(fd)
        fd = None

        os.replace(temp_path, path)
        temp_path = None

    except OSError as e:
        raise StorageError(f"Failed to write {path}: {e}") from e
    finally:
        if fd is not None:
            try:
                os.close(fd)
            except OSError:
                pass
        if temp_path is not None:
            try:
                os.unlink(temp_path)
            except OSError:
                pass


def read_json(path: Path) -> Any:
    """Read JSON data from a file.

    Raises:
        NotFoundError: If file doesn't exist
        StorageError: If file is invalid JSON
    """
    if not path.exists():
        raise NotFoundError(f"File not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise StorageError(f"Invalid JSON in {path}: {e}") from e


def is_resolved(document: dict[str, Any]) -> bool:
    """Whether an admin has already dealt with a clip.

    Resolved clips were either re-cut successfully or explicitly approved
    by a reviewer, and are left out of validation runs.
    """
    reprocessed = (
        document.get("reprocessingStatus") == "completed"
        and bool(document.get("processedClipUrl"))
        and not document.get("videoProcessingError")
    )
    approved = (
        document.get("validationStatus") == "approved"
        and document.get("manuallyReviewed") is True
    )
    return reprocessed or approved


class ClipStore:
    """JSON-file collection of clip documents.

    Attributes:
        path: Path to the JSON file
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load_documents(self) -> list[dict[str, Any]]:
        """Load all clip documents in stored order.

        Raises:
            NotFoundError: If the store file doesn't exist
            StorageError: If the file is not a JSON list of objects with ids
        """
        data = read_json(self.path)
        if isinstance(data, dict) and isinstance(data.get("clips"), list):
            data = data["clips"]
        if not isinstance(data, list):
            raise StorageError(f"Clip store must hold a list of clips: {self.path}")

        for position, document in enumerate(data):
            if not isinstance(document, dict) or "id" not in document:
                raise StorageError(
                    "Clip document without an id",
                    context={"path": str(self.path), "position": position},
                )
        return data

    def save_documents(self, documents: list[dict[str, Any]]) -> None:
        atomic_write(self.path, json.dumps(documents, indent=2, ensure_ascii=False, default=str))

    def get(self, clip_id: str) -> dict[str, Any]:
        """Get a clip document by id.

        Raises:
            NotFoundError: If no clip has this id
        """
        for document in self.load_documents():
            if str(document["id"]) == clip_id:
                return document
        raise NotFoundError(f"Clip not found: {clip_id}")

    def records(self, episode: str | None = None) -> list[ClipTimeRecord]:
        """Clip time records in stored order, optionally for one episode."""
        records = []
        for document in self.load_documents():
            if episode is not None and str(document.get("episode")) != episode:
                continue
            records.append(normalize_clip_record(document))
        return records

    def resolved_ids(self) -> set[str]:
        """Ids of clips to skip in validation runs."""
        return {str(d["id"]) for d in self.load_documents() if is_resolved(d)}

    def _update(self, clip_id: str, mutate) -> dict[str, Any]:
        documents = self.load_documents()
        for document in documents:
            if str(document["id"]) == clip_id:
                mutate(document)
                self.save_documents(documents)
                return document
        raise NotFoundError(f"Clip not found: {clip_id}")

    def apply_proposal(
        self,
        proposal: RepairProposal,
        applied_by: str,
        comments: str | None = None,
    ) -> dict[str, Any]:
        """Write an accepted repair back to its clip.

        Records who applied it, when, why, and the previous times so the
        change can be undone. The clip is marked approved and queued for
        re-cutting.

        Raises:
            ValidationError: If the proposal carries no times
            NotFoundError: If the clip doesn't exist
        """
        if not proposal.has_times:
            raise ValidationError(
                "Repair proposal has no times to apply",
                context={"clip_id": proposal.clip_id, "kind": proposal.kind.value},
            )

        def mutate(document: dict[str, Any]) -> None:
            record = normalize_clip_record(document)
            applied_at = _now()
            history = document.setdefault(REPAIR_HISTORY_FIELD, [])
            history.append(
                {
                    "appliedAt": applied_at,
                    "appliedBy": applied_by,
                    "kind": proposal.kind.value,
                    "rationale": proposal.rationale,
                    "confidence": proposal.confidence.value,
                    "comments": comments,
                    "previous": {
                        "startTimeSeconds": record.start_time_seconds,
                        "endTimeSeconds": record.end_time_seconds,
                        "validationStatus": document.get("validationStatus"),
                        "manuallyReviewed": document.get("manuallyReviewed"),
                        "reprocessingStatus": document.get("reprocessingStatus"),
                        "reviewedAt": document.get("reviewedAt"),
                        "reviewedBy": document.get("reviewedBy"),
                    },
                }
            )
            document["startTimeSeconds"] = proposal.proposed_start_time_seconds
            document["endTimeSeconds"] = proposal.proposed_end_time_seconds
            document["validationStatus"] = "approved"
            document["manuallyReviewed"] = True
            document["reviewedAt"] = applied_at
            document["reviewedBy"] = applied_by
            document["reprocessingStatus"] = "pending"

        document = self._update(proposal.clip_id, mutate)
        logger.info(
            f"Applied repair to clip {proposal.clip_id}",
            extra={"kind": proposal.kind.value, "applied_by": applied_by},
        )
        return document

    def mark_false_positive(
        self,
        clip_id: str,
        reviewed_by: str,
        comments: str | None = None,
    ) -> dict[str, Any]:
        """Mark a flagged clip as okay so later runs skip it."""

        def mutate(document: dict[str, Any]) -> None:
            reviewed_at = _now()
            document["validationStatus"] = "approved"
            document["validationApprovedAt"] = reviewed_at
            document["validationApprovedBy"] = reviewed_by
            document["validationAdminComments"] = comments
            document["falsePositive"] = True
            document["manuallyReviewed"] = True
            document["reviewedAt"] = reviewed_at
            document["reviewedBy"] = reviewed_by

        document = self._update(clip_id, mutate)
        logger.info(f"Marked clip {clip_id} as false positive", extra={"reviewed_by": reviewed_by})
        return document

    def undo_last_repair(self, clip_id: str) -> dict[str, Any]:
        """Restore the times and review state from before the last repair.

        Raises:
            NotFoundError: If the clip doesn't exist or has no repair history
        """

        def mutate(document: dict[str, Any]) -> None:
            history = document.get(REPAIR_HISTORY_FIELD) or []
            if not history:
                raise NotFoundError(f"No repair to undo for clip: {clip_id}")

            entry = history.pop()
            previous = copy.deepcopy(entry["previous"])
            document["startTimeSeconds"] = previous["startTimeSeconds"]
            document["endTimeSeconds"] = previous["endTimeSeconds"]
            for key in _REVIEW_STATE_FIELDS:
                if previous.get(key) is None:
                    document.pop(key, None)
                else:
                    document[key] = previous[key]
            if not history:
                document.pop(REPAIR_HISTORY_FIELD, None)

        document = self._update(clip_id, mutate)
        logger.info(f"Reverted last repair on clip {clip_id}")
        return document
