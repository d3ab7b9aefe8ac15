"""Entity resolution: find, score, merge and un-merge duplicate entities.

String and attribute similarity, prefix-blocked candidate discovery,
strategy-driven merges with an audit trail, and bounded batch resolution.
"""

from kg_resolve.resolve.auto import AutoResolver
from kg_resolve.resolve.candidates import CandidateFinder
from kg_resolve.resolve.engine import MergeEngine, merge_properties
from kg_resolve.resolve.io import AuditLog, AuditSink
from kg_resolve.resolve.scoring import EntitySimilarityScorer
from kg_resolve.resolve.service import ResolutionService
from kg_resolve.resolve.undo import UndoEngine

__all__ = [
    "AuditLog",
    "AuditSink",
    "AutoResolver",
    "CandidateFinder",
    "EntitySimilarityScorer",
    "MergeEngine",
    "ResolutionService",
    "UndoEngine",
    "merge_properties",
]
