"""Reverse a recorded merge from its audit snapshot."""

import logging

from kg_resolve.errors import ValidationError
from kg_resolve.graph.store import GraphStore
from kg_resolve.resolve.io import AuditSink
from kg_resolve.resolve.models import UndoResult

logger = logging.getLogger(__name__)

# Records written before node labels were snapshotted
FALLBACK_NODE_LABELS = ["Entity"]


class UndoEngine:
    """Restores merged-away entities from their merge records.

    Only the source entity comes back. Relationships moved onto the target
    and values the target adopted during the merge stay where they are.
    """

    def __init__(self, store: GraphStore, audit: AuditSink) -> None:
        self.store = store
        self.audit = audit

    def undo_merge(self, merge_id: str) -> UndoResult:
        """Recreate the source entity of ``merge_id`` exactly as snapshotted.

        Raises:
            MergeRecordNotFoundError: No record with this id
            ValidationError: The merge was already undone
        """
        record = self.audit.get_merge_record(merge_id)
        if record.is_undone:
            raise ValidationError(f"Merge {merge_id} was already undone")

        node_labels = list(record.source_node_labels) or list(FALLBACK_NODE_LABELS)
        # put_entity replaces the whole property map, which also clears the
        # merged_into stamp left on a soft-merged source
        self.store.put_entity(record.source_uri, dict(record.source_snapshot), node_labels)
        self.audit.mark_undone(merge_id)

        logger.info(f"Undid merge {merge_id}: restored {record.source_uri}")

        return UndoResult(
            merge_id=merge_id,
            restored_uri=record.source_uri,
            message=(
                f"Restored {record.source_uri}. Relationships transferred to "
                f"{record.target_uri} were not reverted."
            ),
        )
