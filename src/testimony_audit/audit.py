"""Audit runs over the clip store.

Connects the pure validation core to storage:
1. Load clip records and the skip-set of resolved clips
2. Validate the collection into a report
3. Plan repairs for flagged clips
4. Apply accepted repairs with an audit trail
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Iterable

from testimony_audit.config import ValidationThresholds
from testimony_audit.errors import ErrorContext
from testimony_audit.logging import (
    LogContext,
    get_logger,
    log_operation_complete,
    log_operation_start,
)
from testimony_audit.repair.heuristics import RepairProposal, propose_repairs
from testimony_audit.storage import ClipStore
from testimony_audit.validation.aggregator import ValidationReport, batch_validate_clips

logger = get_logger(__name__)


@dataclass
class RepairOutcome:
    """Result of applying a batch of repair proposals.

    Attributes:
        applied: Ids of clips whose times were rewritten
        deferred: Ids of clips left for manual review
    """

    applied: list[str] = field(default_factory=list)
    deferred: list[str] = field(default_factory=list)

    @property
    def applied_count(self) -> int:
        return len(self.applied)

    @property
    def deferred_count(self) -> int:
        return len(self.deferred)


def run_validation(
    store: ClipStore,
    thresholds: ValidationThresholds | None = None,
    episode: str | None = None,
    include_resolved: bool = False,
) -> ValidationReport:
    """Validate the clips in a store.

    Args:
        store: Clip store to read from
        thresholds: Validation thresholds
        episode: Only validate clips from this episode
        include_resolved: Also check clips an admin already resolved

    Returns:
        ValidationReport over the selected clips
    """
    with LogContext(run="validate"):
        started = time.monotonic()
        log_operation_start(logger, "clip time validation", episode=episode)

        records = store.records(episode=episode)
        skip_ids = set() if include_resolved else store.resolved_ids()
        report = batch_validate_clips(records, skip_ids=skip_ids, thresholds=thresholds)

        log_operation_complete(
            logger,
            "clip time validation",
            duration=time.monotonic() - started,
            considered=report.summary.total,
            skipped=report.summary.skipped,
            flagged=report.summary.flagged,
        )
    return report


def plan_repairs(
    report: ValidationReport,
    thresholds: ValidationThresholds | None = None,
) -> list[RepairProposal]:
    """Repair proposals for every flagged clip, in report order."""
    proposals = propose_repairs(report.flagged_clips, thresholds)
    logger.info(
        f"Planned {len(proposals)} repairs",
        extra={"with_times": sum(1 for p in proposals if p.has_times)},
    )
    return proposals


def apply_repairs(
    store: ClipStore,
    proposals: Iterable[RepairProposal],
    applied_by: str,
    accept_manual: bool = False,
) -> RepairOutcome:
    """Write proposals back to the store.

    Proposals without times are always deferred. Proposals flagged for
    manual review are only applied when `accept_manual` is set, which
    stands for a human accepting them.

    Args:
        store: Clip store to write to
        proposals: Proposals to apply
        applied_by: Who accepted the repairs (recorded on each clip)
        accept_manual: Apply low-confidence proposals as well

    Returns:
        RepairOutcome listing applied and deferred clip ids
    """
    outcome = RepairOutcome()

    for proposal in proposals:
        if not proposal.has_times or (proposal.needs_manual_review and not accept_manual):
            logger.info(
                f"Deferred clip {proposal.clip_id} to manual review",
                extra={"kind": proposal.kind.value, "rationale": proposal.rationale},
            )
            outcome.deferred.append(proposal.clip_id)
            continue

        with ErrorContext("apply repair", context={"clip_id": proposal.clip_id}):
            store.apply_proposal(proposal, applied_by=applied_by)
        outcome.applied.append(proposal.clip_id)

    logger.info(
        f"Applied {outcome.applied_count} repairs, deferred {outcome.deferred_count}",
        extra={"applied_by": applied_by},
    )
    return outcome
