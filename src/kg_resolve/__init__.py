"""kg-resolve: entity resolution and deduplication for property graphs.

Finds entities that likely denote the same real-world thing, scores them
with string and attribute similarity, and merges them with a reversible
audit trail. Usable as a library or through the ``kgr`` CLI.
"""

__version__ = "0.1.0"

from kg_resolve.config import ResolveConfig
from kg_resolve.errors import (
    EntityNotFoundError,
    MergeRecordNotFoundError,
    NotFoundError,
    ResolutionError,
    StoreError,
    ValidationError,
)
from kg_resolve.graph.knowledge_graph import KnowledgeGraph
from kg_resolve.pipeline import (
    open_workspace,
    run_auto_resolve,
    run_find_candidates,
    run_history,
    run_merge,
    run_undo,
)
from kg_resolve.resolve.io import AuditLog
from kg_resolve.resolve.service import ResolutionService

__all__ = [
    "__version__",
    "AuditLog",
    "EntityNotFoundError",
    "KnowledgeGraph",
    "MergeRecordNotFoundError",
    "NotFoundError",
    "ResolutionError",
    "ResolutionService",
    "ResolveConfig",
    "StoreError",
    "ValidationError",
    "open_workspace",
    "run_auto_resolve",
    "run_find_candidates",
    "run_history",
    "run_merge",
    "run_undo",
]
