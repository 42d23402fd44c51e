"""Testimony Audit - time-range validation for testimony clips.

Inspects the recorded start/end offsets of testimony clips cut from longer
recordings, classifies suspicious or broken ranges, and proposes
conservative repairs for an admin to accept:
1. Validation: one finding per clip, with a severity and a reason
2. Aggregation: triage reports over whole collections
3. Repair: deterministic correction proposals for flagged clips
"""

__version__ = "0.1.0"
