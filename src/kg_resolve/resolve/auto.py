"""Batch auto-resolution of high-confidence duplicates."""

import logging

from kg_resolve.errors import ResolutionError
from kg_resolve.resolve.candidates import CandidateFinder
from kg_resolve.resolve.engine import MergeEngine
from kg_resolve.resolve.models import AutoResolveResult, MergeFailure, MergePreview

logger = logging.getLogger(__name__)


class AutoResolver:
    """Merges the best-scoring candidates in one bounded, sequential batch."""

    def __init__(self, finder: CandidateFinder, engine: MergeEngine) -> None:
        self.finder = finder
        self.engine = engine

    def auto_resolve_duplicates(
        self,
        min_score: float = 0.85,
        max_merges: int = 50,
        dry_run: bool = True,
    ) -> AutoResolveResult:
        """Merge candidates scoring at least ``min_score``, at most ``max_merges``.

        In a dry run nothing is written; each qualifying candidate is reported
        as a preview and still counts toward ``merged``. In a live run the
        first entity of each pair is merged into the second. A failing merge
        is recorded in ``errors`` and the batch moves on.
        """
        found = self.finder.find_duplicate_candidates(
            min_score=min_score,
            limit=max_merges * 2,
        )
        result = AutoResolveResult(dry_run=dry_run)

        for candidate in found.candidates:
            if result.merged >= max_merges:
                break
            result.processed += 1

            if candidate.score < min_score:
                result.skipped += 1
                continue

            source = candidate.entity1.uri
            target = candidate.entity2.uri

            if dry_run:
                result.merges.append(MergePreview(
                    source=source,
                    target=target,
                    score=candidate.score,
                ))
                result.merged += 1
                logger.debug(f"Would merge {source} → {target} ({candidate.score:.3f})")
                continue

            try:
                merge = self.engine.merge_entities(source, target, keep_source=False)
            except ResolutionError as e:
                result.errors.append(MergeFailure(source=source, target=target, error=str(e)))
                logger.warning(f"Auto-merge {source} → {target} failed: {e}")
                continue

            result.merges.append(merge.model_copy(update={"score": candidate.score}))
            result.merged += 1

        mode = "dry run" if dry_run else "live"
        logger.info(
            f"Auto-resolve ({mode}): {result.processed} processed, {result.merged} merged, "
            f"{result.skipped} skipped, {len(result.errors)} errors"
        )
        return result
