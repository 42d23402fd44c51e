"""Tests for repair heuristics."""

import pytest

from testimony_audit.config import ValidationThresholds
from testimony_audit.models.clip import ClipTimeRecord, normalize_clip_record
from testimony_audit.repair.heuristics import (
    RepairConfidence,
    propose_repair,
    propose_repairs,
)
from testimony_audit.validation.aggregator import batch_validate_clips
from testimony_audit.validation.checker import validate_clip_time
from testimony_audit.validation.criteria import FindingKind


def finding_for(start, end, clip_id="clip_01", **kwargs):
    record = ClipTimeRecord(id=clip_id, start_time_seconds=start, end_time_seconds=end, **kwargs)
    return validate_clip_time(record)


class TestNegativeDuration:
    """Tests for swapped start/end."""

    def test_swap(self):
        """Test that start and end trade places."""
        proposal = propose_repair(finding_for(120, 60))

        assert proposal.kind is FindingKind.NEGATIVE_DURATION
        assert proposal.proposed_start_time_seconds == 60
        assert proposal.proposed_end_time_seconds == 120
        assert proposal.needs_manual_review is False
        assert proposal.confidence is RepairConfidence.HIGH
        assert "swapped" in proposal.rationale

    @pytest.mark.parametrize("start,end", [(120.5, 60.25), (5000, 10), (1.0, 0.999)])
    def test_swap_is_exact(self, start, end):
        """Test that both recorded values survive unchanged."""
        proposal = propose_repair(finding_for(start, end))

        assert proposal.proposed_start_time_seconds == end
        assert proposal.proposed_end_time_seconds == start
        assert proposal.original_start_time_seconds == start
        assert proposal.original_end_time_seconds == end

    def test_coerced_end_swapped_for_review(self):
        """Test that a missing end read as 0 is swapped but left to a human."""
        record = ClipTimeRecord(
            id="a",
            start_time_seconds=120.0,
            end_time_seconds=0.0,
            coerced_fields=("end_time_seconds",),
        )

        proposal = propose_repair(validate_clip_time(record))

        assert proposal.kind is FindingKind.NEGATIVE_DURATION
        assert proposal.proposed_start_time_seconds == 0.0
        assert proposal.proposed_end_time_seconds == 120.0
        assert proposal.needs_manual_review is True
        assert proposal.confidence is RepairConfidence.LOW
        assert "end_time_seconds" in proposal.rationale

    def test_missing_end_from_document_swapped(self):
        """Test a stored clip without an end still gets the exact swap."""
        finding = validate_clip_time(normalize_clip_record({"id": "x", "startTimeSeconds": 120}))

        proposal = propose_repair(finding)

        assert proposal.proposed_start_time_seconds == finding.end_time_seconds == 0.0
        assert proposal.proposed_end_time_seconds == finding.start_time_seconds == 120.0
        assert proposal.needs_manual_review is True

    def test_coerced_non_swap_kind_not_repaired(self):
        """Test coerced times block the too-long guess."""
        record = ClipTimeRecord(
            id="a",
            start_time_seconds=0.0,
            end_time_seconds=4000.0,
            coerced_fields=("start_time_seconds",),
        )

        proposal = propose_repair(validate_clip_time(record))

        assert proposal.kind is FindingKind.TOO_LONG
        assert proposal.has_times is False
        assert "start_time_seconds" in proposal.rationale


class TestTooLong:
    """Tests for clips over the hard maximum."""

    def test_plausible_start_gets_low_confidence_guess(self):
        """Test end guessed as start + 300s, still needing review."""
        proposal = propose_repair(finding_for(0, 4000))

        assert proposal.proposed_start_time_seconds == 0
        assert proposal.proposed_end_time_seconds == 300
        assert proposal.needs_manual_review is True
        assert proposal.confidence is RepairConfidence.LOW
        assert "low confidence" in proposal.rationale

    def test_implausible_start_deferred(self):
        """Test that an implausible start gets no proposal."""
        proposal = propose_repair(finding_for(20000, 25000))

        assert proposal.has_times is False
        assert proposal.needs_manual_review is True
        assert proposal.rationale == "start offset implausible, cannot infer a safe end time"

    def test_custom_repair_duration(self):
        """Test the fallback duration comes from thresholds."""
        thresholds = ValidationThresholds(default_repair_duration_seconds=180)
        finding = validate_clip_time(
            ClipTimeRecord(id="a", start_time_seconds=60, end_time_seconds=5000), thresholds
        )

        proposal = propose_repair(finding, thresholds)

        assert proposal.proposed_end_time_seconds == 240


class TestManualOnly:
    """Tests for kinds with no automatic repair."""

    @pytest.mark.parametrize(
        "start,end,kind",
        [
            (100, 100, FindingKind.ZERO_DURATION),
            (0, 3, FindingKind.TOO_SHORT),
            (0, 1200, FindingKind.SUSPICIOUSLY_LONG),
            (15000, 15090, FindingKind.START_OUT_OF_RANGE),
        ],
    )
    def test_no_proposal(self, start, end, kind):
        """Test that only manual review is offered."""
        proposal = propose_repair(finding_for(start, end))

        assert proposal.kind is kind
        assert proposal.proposed_start_time_seconds is None
        assert proposal.proposed_end_time_seconds is None
        assert proposal.needs_manual_review is True
        assert proposal.confidence is RepairConfidence.NONE
        assert proposal.rationale


class TestProposeRepairs:
    """Tests for batch proposals."""

    def test_order_follows_findings(self):
        """Test proposals come back in report order."""
        report = batch_validate_clips(
            [
                ClipTimeRecord(id="a", start_time_seconds=0, end_time_seconds=3),
                ClipTimeRecord(id="b", start_time_seconds=0, end_time_seconds=60),
                ClipTimeRecord(id="c", start_time_seconds=90, end_time_seconds=30),
            ]
        )

        proposals = propose_repairs(report.flagged_clips)

        assert [p.clip_id for p in proposals] == ["a", "c"]
        assert proposals[1].has_times is True

    def test_to_dict(self):
        """Test proposal serialization."""
        data = propose_repair(finding_for(120, 60)).to_dict()

        assert data == {
            "clip_id": "clip_01",
            "kind": "negative_duration",
            "proposed_start_time_seconds": 60,
            "proposed_end_time_seconds": 120,
            "needs_manual_review": False,
            "rationale": "negative duration, start and end swapped",
            "confidence": "high",
            "original_start_time_seconds": 120,
            "original_end_time_seconds": 60,
        }
