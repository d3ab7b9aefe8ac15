"""Library-usable pipeline functions.

Each function corresponds to a CLI command but takes explicit parameters
instead of reading CLI args. Use these from notebooks, services, or
anywhere you want kg-resolve as a library.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from kg_resolve.config import ResolveConfig
from kg_resolve.graph.knowledge_graph import KnowledgeGraph
from kg_resolve.resolve.blocking import get_blocker
from kg_resolve.resolve.io import AuditLog
from kg_resolve.resolve.models import (
    AutoResolveResult,
    CandidateResult,
    MergeRecord,
    MergeResult,
    MergeStrategy,
    UndoResult,
)
from kg_resolve.resolve.service import ResolutionService

logger = logging.getLogger(__name__)


def build_service(
    kg: KnowledgeGraph, audit: AuditLog, config: ResolveConfig
) -> ResolutionService:
    """Wire a ResolutionService from configuration."""
    return ResolutionService(
        kg,
        audit,
        thresholds=config.thresholds,
        weights=config.weights,
        blocker=get_blocker(config.blocking),
    )


@contextmanager
def open_workspace(config: ResolveConfig) -> Iterator[ResolutionService]:
    """Load the graph and audit log, yield a service, save on clean exit.

    Nothing is written unless the block completes without raising. The
    graph is saved first (only if something in it changed), then pending
    audit records. A failed graph save therefore leaves no audit records
    for merges the graph file never received.

    Raises:
        StoreError: The graph or audit file could not be read or written
    """
    kg = KnowledgeGraph.load(config.graph_path, excluded_labels=config.excluded_node_labels)
    audit = AuditLog(config.audit_path, autoflush=False)
    loaded_revision = kg.revision
    logger.debug(
        f"Workspace opened: {kg.entity_count} entities, {len(audit.records)} merge records"
    )
    try:
        yield build_service(kg, audit, config)
        if kg.revision != loaded_revision:
            kg.save(config.graph_path)
        audit.flush()
    finally:
        logger.debug(f"Workspace released: {config.graph_path}")


def run_find_candidates(
    config: ResolveConfig,
    entity_type: str | None = None,
    min_score: float | None = None,
    limit: int = 100,
    include_resolved: bool = False,
) -> CandidateResult:
    """Score likely duplicate pairs in the configured graph.

    Args:
        config: Paths, thresholds, weights and blocking scheme
        entity_type: Restrict to one node label or entity type
        min_score: Score floor (default: thresholds.minimum)
        limit: Maximum candidates returned
        include_resolved: Also consider soft-merged entities

    Returns:
        CandidateResult ranked by score
    """
    with open_workspace(config) as service:
        return service.find_duplicate_candidates(
            entity_type=entity_type,
            min_score=min_score,
            limit=limit,
            include_resolved=include_resolved,
        )


def run_merge(
    config: ResolveConfig,
    source_uri: str,
    target_uri: str,
    keep_source: bool = False,
    merge_strategy: MergeStrategy | None = None,
    user_id: str = "system",
) -> MergeResult:
    """Merge one entity into another and save the graph.

    ``merge_strategy`` falls back to ``config.merge_strategy``.
    """
    with open_workspace(config) as service:
        return service.merge_entities(
            source_uri,
            target_uri,
            keep_source=keep_source,
            merge_strategy=merge_strategy or config.merge_strategy,
            user_id=user_id,
        )


def run_auto_resolve(
    config: ResolveConfig,
    min_score: float | None = None,
    max_merges: int | None = None,
    dry_run: bool = True,
) -> AutoResolveResult:
    """Merge high-confidence duplicates in one bounded batch.

    Args:
        config: Workspace configuration (supplies default score and cap)
        min_score: Merge pairs scoring at least this
        max_merges: Stop after this many merges
        dry_run: Report what would merge without writing anything

    Returns:
        AutoResolveResult with counters and per-candidate outcomes
    """
    with open_workspace(config) as service:
        return service.auto_resolve_duplicates(
            min_score=config.auto_min_score if min_score is None else min_score,
            max_merges=config.max_merges if max_merges is None else max_merges,
            dry_run=dry_run,
        )


def run_history(config: ResolveConfig, uri: str) -> list[MergeRecord]:
    """Merge records involving ``uri``, newest first."""
    return AuditLog(config.audit_path).list_merge_records_for(uri)


def run_undo(config: ResolveConfig, merge_id: str) -> UndoResult:
    """Restore the source entity of a recorded merge and save the graph."""
    with open_workspace(config) as service:
        return service.undo_merge(merge_id)
