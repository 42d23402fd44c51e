"""Repair heuristics for flagged clips.

Proposes conservative corrections for historical bad time data, or
defers to manual review. Proposals are never written here.
"""

from testimony_audit.repair.heuristics import (
    RepairConfidence,
    RepairProposal,
    propose_repair,
    propose_repairs,
)

__all__ = [
    "RepairConfidence",
    "RepairProposal",
    "propose_repair",
    "propose_repairs",
]
