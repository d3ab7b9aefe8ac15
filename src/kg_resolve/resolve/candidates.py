"""Duplicate candidate discovery.

Pulls resolvable entities from the graph store (ordered by label), prunes
obviously different pairs with a blocking predicate, scores the rest and
returns a ranked candidate list. No LLM and no training step.
"""

import logging

from kg_resolve.graph.store import GraphStore
from kg_resolve.resolve.blocking import Blocker, prefix_blocker
from kg_resolve.resolve.models import (
    AttributeWeights,
    CandidateResult,
    ConfidenceLevel,
    SimilarityCandidate,
    Thresholds,
)
from kg_resolve.resolve.scoring import EntitySimilarityScorer

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100


def confidence_level(score: float, thresholds: Thresholds) -> ConfidenceLevel:
    """Map a score onto the exact/high/medium/low/uncertain ladder."""
    if score >= thresholds.exact_match:
        return "exact"
    if score >= thresholds.high:
        return "high"
    if score >= thresholds.medium:
        return "medium"
    if score >= thresholds.low:
        return "low"
    return "uncertain"


class CandidateFinder:
    """Find likely duplicate pairs among the entities of a graph store."""

    def __init__(
        self,
        store: GraphStore,
        scorer: EntitySimilarityScorer | None = None,
        thresholds: Thresholds | None = None,
        blocker: Blocker = prefix_blocker,
    ) -> None:
        self.store = store
        self.scorer = scorer or EntitySimilarityScorer()
        self.thresholds = thresholds or Thresholds()
        self.blocker = blocker

    def find_duplicate_candidates(
        self,
        entity_type: str | None = None,
        min_score: float | None = None,
        limit: int = DEFAULT_LIMIT,
        include_resolved: bool = False,
        thresholds: Thresholds | None = None,
        weights: AttributeWeights | None = None,
    ) -> CandidateResult:
        """Find entity pairs that likely refer to the same real-world thing.

        Args:
            entity_type: Only consider entities with this node label or type
            min_score: Keep pairs scoring at least this (default: thresholds.minimum)
            limit: Maximum candidates returned; 2x this many entities are fetched
            include_resolved: Also consider entities already soft-merged elsewhere
            thresholds: Per-call override of the confidence bands
            weights: Per-call override of the attribute weights

        Returns:
            CandidateResult with candidates sorted by score (descending)
        """
        active = thresholds or self.thresholds
        floor = active.minimum if min_score is None else min_score

        entities = self.store.find_entities(
            type_filter=entity_type,
            exclude_merged=not include_resolved,
            limit=limit * 2,
        )
        logger.info(f"Scanning {len(entities)} entities for duplicates")

        candidates: list[SimilarityCandidate] = []
        processed: set[tuple[str, str]] = set()
        blocked = 0

        for i, e1 in enumerate(entities):
            for e2 in entities[i + 1:]:
                pair_key = (e1.uri, e2.uri) if e1.uri <= e2.uri else (e2.uri, e1.uri)
                if pair_key in processed:
                    continue
                processed.add(pair_key)

                if not self.blocker(e1, e2):
                    blocked += 1
                    continue

                score = self.scorer.score(e1, e2, weights=weights)
                if score < floor:
                    continue

                candidates.append(SimilarityCandidate(
                    entity1=e1,
                    entity2=e2,
                    score=score,
                    confidence_level=confidence_level(score, active),
                    match_details=self.scorer.match_details(e1, e2),
                ))

        candidates.sort(key=lambda c: c.score, reverse=True)

        logger.debug(f"Compared {len(processed)} pairs, {blocked} pruned by blocking")
        logger.info(f"Found {len(candidates)} duplicate candidates (min score {floor:.2f})")

        return CandidateResult(
            candidates=candidates[:limit],
            total_found=len(candidates),
            thresholds=active,
        )
