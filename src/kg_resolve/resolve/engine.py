"""Graph surgery engine: consolidate a source entity into a target.

For each merge:
1. Snapshot both entities (the only state undo can rely on)
2. Merge source properties into the target under a conflict strategy
3. Re-point every source relationship at the target (upsert, never append)
4. Delete the source, or keep it stamped as merged into the target
5. Write an immutable merge record to the audit sink
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from kg_resolve.errors import ValidationError
from kg_resolve.graph.store import GraphStore
from kg_resolve.resolve.io import AuditSink
from kg_resolve.resolve.models import MERGE_STRATEGIES, MergeRecord, MergeResult, MergeStrategy
from kg_resolve.resolve.scoring import MERGE_BOOKKEEPING_KEYS, is_system_key

logger = logging.getLogger(__name__)


def _is_empty(value: Any) -> bool:
    """None and "" count as missing; 0 and False are real values."""
    return value is None or value == ""


def merge_properties(
    source: dict[str, Any],
    target: dict[str, Any],
    strategy: MergeStrategy = "prefer_target",
) -> dict[str, Any]:
    """Merge a source property map into a copy of the target's.

    Strategies:
      prefer_source  non-empty source values overwrite the target
      prefer_target  source values only fill empty/absent target values
      merge_all      differing strings are joined as "target; source",
                     otherwise the source fills gaps and the target wins

    System keys (uri, concept_id, created_at, "_"-prefixed) and merge
    bookkeeping are never taken from the source.
    """
    if strategy not in MERGE_STRATEGIES:
        raise ValidationError(
            f"Invalid merge strategy: {strategy!r}. Choose from: {', '.join(MERGE_STRATEGIES)}"
        )

    merged = dict(target)
    for key, value in source.items():
        if is_system_key(key) or key in MERGE_BOOKKEEPING_KEYS:
            continue

        target_value = target.get(key)

        if strategy == "prefer_source":
            if not _is_empty(value):
                merged[key] = value

        elif strategy == "prefer_target":
            if _is_empty(target_value) and not _is_empty(value):
                merged[key] = value

        elif strategy == "merge_all":
            if not _is_empty(value) and not _is_empty(target_value) and value != target_value:
                if isinstance(value, str) and isinstance(target_value, str):
                    merged[key] = f"{target_value}; {value}"
                else:
                    merged[key] = target_value
            elif not _is_empty(value) and _is_empty(target_value):
                merged[key] = value

    return merged


class MergeEngine:
    """Merges confirmed duplicate pairs and records every merge for undo."""

    def __init__(self, store: GraphStore, audit: AuditSink) -> None:
        self.store = store
        self.audit = audit

    def merge_entities(
        self,
        source_uri: str,
        target_uri: str,
        keep_source: bool = False,
        merge_strategy: MergeStrategy = "prefer_target",
        user_id: str = "system",
    ) -> MergeResult:
        """Consolidate ``source_uri`` into ``target_uri``.

        Args:
            source_uri: Entity to fold away
            target_uri: Canonical entity that survives
            keep_source: Keep the source, stamped ``merged_into`` (soft merge)
            merge_strategy: Property conflict policy (see merge_properties)
            user_id: Actor recorded in the audit trail

        Returns:
            MergeResult with the merge id and number of relationships moved

        Raises:
            ValidationError: Missing/identical URIs or unknown strategy
            EntityNotFoundError: Either entity is absent
            StoreError: The graph store or audit sink failed
        """
        if not source_uri or not target_uri:
            raise ValidationError("Both source_uri and target_uri are required")
        if source_uri == target_uri:
            raise ValidationError(f"Cannot merge {source_uri} into itself")
        if merge_strategy not in MERGE_STRATEGIES:
            raise ValidationError(
                f"Invalid merge strategy: {merge_strategy!r}. "
                f"Choose from: {', '.join(MERGE_STRATEGIES)}"
            )

        source, target = self.store.get_entities([source_uri, target_uri])

        # Snapshots must be taken before anything is written
        source_snapshot = dict(source.properties)
        target_snapshot = dict(target.properties)
        source_labels = list(source.node_labels)

        now = datetime.now(timezone.utc)
        merged_props = merge_properties(source_snapshot, target_snapshot, merge_strategy)
        merge_count = target_snapshot.get("merge_count", 0)
        if not isinstance(merge_count, int) or isinstance(merge_count, bool):
            merge_count = 0
        merged_props["merge_count"] = merge_count + 1
        merged_props["last_merged_at"] = now
        self.store.update_entity_properties(target_uri, merged_props)

        transferred = self._transfer_relationships(source_uri, target_uri)

        if keep_source:
            self.store.update_entity_properties(source_uri, {
                "merged_into": target_uri,
                "merged_at": now,
                "is_canonical": False,
            })
        else:
            self.store.delete_entity(source_uri)

        record = MergeRecord(
            merge_id=str(uuid.uuid4()),
            merged_at=now,
            merged_by=user_id,
            source_uri=source_uri,
            target_uri=target_uri,
            strategy=merge_strategy,
            source_snapshot=source_snapshot,
            target_snapshot=target_snapshot,
            source_node_labels=source_labels,
        )
        self.audit.write_merge_record(record)

        logger.info(
            f"Merged {source_uri} → {target_uri} ({merge_strategy}): "
            f"{transferred} relations transferred, source "
            f"{'kept' if keep_source else 'deleted'} [merge {record.merge_id}]"
        )

        return MergeResult(
            merge_id=record.merge_id,
            target_uri=target_uri,
            source_deleted=not keep_source,
            relationships_transferred=transferred,
        )

    def _transfer_relationships(self, source_uri: str, target_uri: str) -> int:
        """Re-create source edges on the target. Returns outgoing + incoming count.

        Edges between source and target, and self-loops on the source, are
        dropped rather than turned into self-loops on the target.
        """
        skip = {source_uri, target_uri}
        transferred = 0

        for edge in self.store.list_edges(source_uri, "out"):
            if edge.target_uri in skip:
                continue
            props = {**edge.properties, "transferred_from": source_uri}
            self.store.upsert_edge(target_uri, edge.target_uri, edge.edge_type, props)
            transferred += 1
            logger.debug(f"  {target_uri} -[{edge.edge_type}]-> {edge.target_uri}")

        for edge in self.store.list_edges(source_uri, "in"):
            if edge.source_uri in skip:
                continue
            props = {**edge.properties, "transferred_from": source_uri}
            self.store.upsert_edge(edge.source_uri, target_uri, edge.edge_type, props)
            transferred += 1
            logger.debug(f"  {edge.source_uri} -[{edge.edge_type}]-> {target_uri}")

        return transferred
