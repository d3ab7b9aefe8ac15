"""Entry point bundling candidate search, merge, undo and batch resolution.

Everything is wired from two injected collaborators (a GraphStore and an
AuditSink); there is no module-level state.
"""

from kg_resolve.graph.store import GraphStore
from kg_resolve.resolve.auto import AutoResolver
from kg_resolve.resolve.blocking import Blocker, prefix_blocker
from kg_resolve.resolve.candidates import DEFAULT_LIMIT, CandidateFinder
from kg_resolve.resolve.engine import MergeEngine
from kg_resolve.resolve.io import AuditSink
from kg_resolve.resolve.models import (
    AttributeWeights,
    AutoResolveResult,
    CandidateResult,
    MergeRecord,
    MergeResult,
    MergeStrategy,
    Thresholds,
    UndoResult,
)
from kg_resolve.resolve.scoring import EntitySimilarityScorer
from kg_resolve.resolve.undo import UndoEngine


class ResolutionService:
    """Entity resolution operations over one graph store and audit sink."""

    def __init__(
        self,
        store: GraphStore,
        audit: AuditSink,
        thresholds: Thresholds | None = None,
        weights: AttributeWeights | None = None,
        blocker: Blocker = prefix_blocker,
    ) -> None:
        self.store = store
        self.audit = audit
        self.scorer = EntitySimilarityScorer(weights)
        self.finder = CandidateFinder(store, self.scorer, thresholds, blocker)
        self.engine = MergeEngine(store, audit)
        self.undo_engine = UndoEngine(store, audit)
        self.auto_resolver = AutoResolver(self.finder, self.engine)

    @property
    def thresholds(self) -> Thresholds:
        return self.finder.thresholds

    def find_duplicate_candidates(
        self,
        entity_type: str | None = None,
        min_score: float | None = None,
        limit: int = DEFAULT_LIMIT,
        include_resolved: bool = False,
        thresholds: Thresholds | None = None,
        weights: AttributeWeights | None = None,
    ) -> CandidateResult:
        return self.finder.find_duplicate_candidates(
            entity_type=entity_type,
            min_score=min_score,
            limit=limit,
            include_resolved=include_resolved,
            thresholds=thresholds,
            weights=weights,
        )

    def merge_entities(
        self,
        source_uri: str,
        target_uri: str,
        keep_source: bool = False,
        merge_strategy: MergeStrategy = "prefer_target",
        user_id: str = "system",
    ) -> MergeResult:
        return self.engine.merge_entities(
            source_uri,
            target_uri,
            keep_source=keep_source,
            merge_strategy=merge_strategy,
            user_id=user_id,
        )

    def auto_resolve_duplicates(
        self,
        min_score: float = 0.85,
        max_merges: int = 50,
        dry_run: bool = True,
    ) -> AutoResolveResult:
        return self.auto_resolver.auto_resolve_duplicates(
            min_score=min_score,
            max_merges=max_merges,
            dry_run=dry_run,
        )

    def get_merge_history(self, uri: str) -> list[MergeRecord]:
        """Merge records where ``uri`` was the source or the target, newest first."""
        return self.audit.list_merge_records_for(uri)

    def undo_merge(self, merge_id: str) -> UndoResult:
        return self.undo_engine.undo_merge(merge_id)
