"""Merge audit log: the AuditSink protocol and a YAML-file implementation."""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

import yaml
from pydantic import ValidationError as PydanticValidationError

from kg_resolve.errors import MergeRecordNotFoundError, StoreError
from kg_resolve.graph.models import decode_properties, encode_properties
from kg_resolve.resolve.models import MergeRecord

logger = logging.getLogger(__name__)

_SNAPSHOT_FIELDS = ("source_snapshot", "target_snapshot")


class AuditSink(Protocol):
    """Protocol for persisting immutable merge records."""

    def write_merge_record(self, record: MergeRecord) -> None: ...

    def get_merge_record(self, merge_id: str) -> MergeRecord: ...

    def mark_undone(self, merge_id: str) -> MergeRecord: ...

    def list_merge_records_for(self, uri: str) -> list[MergeRecord]: ...


def _record_to_dict(record: MergeRecord) -> dict[str, Any]:
    data = record.model_dump()
    for field in _SNAPSHOT_FIELDS:
        data[field] = encode_properties(data[field])
    data["merged_at"] = record.merged_at.isoformat()
    data["undone_at"] = record.undone_at.isoformat() if record.undone_at else None
    return data


def _record_from_dict(data: dict[str, Any]) -> MergeRecord:
    data = dict(data)
    for field in _SNAPSHOT_FIELDS:
        data[field] = decode_properties(data.get(field) or {})
    return MergeRecord.model_validate(data)


def write_audit_log(records: list[MergeRecord], path: Path) -> None:
    """Write merge records to YAML."""
    data = {"merges": [_record_to_dict(r) for r in records]}
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
    except (OSError, yaml.YAMLError) as e:
        raise StoreError(f"Could not write audit log to {path}: {e}") from e
    logger.debug(f"Wrote {len(records)} merge records to {path}")


def read_audit_log(path: Path) -> list[MergeRecord]:
    """Read merge records from YAML. A missing or empty file has no records."""
    if not path.exists():
        return []
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise StoreError(f"Could not read audit log from {path}: {e}") from e
    if data is None:
        return []
    try:
        return [_record_from_dict(entry) for entry in data.get("merges", [])]
    except PydanticValidationError as e:
        raise StoreError(f"Invalid merge record in {path}: {e}") from e


class AuditLog:
    """Append-only store of merge records, optionally mirrored to a YAML file.

    With ``path=None`` records live in memory only. Otherwise every write
    rewrites the file so it always reflects the full history. With
    ``autoflush=False`` writes stay in memory until ``flush()`` is called.
    """

    def __init__(self, path: Path | None = None, autoflush: bool = True) -> None:
        self.path = path
        self.autoflush = autoflush
        self._records: dict[str, MergeRecord] = {}
        self._dirty = False
        if path is not None:
            for record in read_audit_log(path):
                self._records[record.merge_id] = record

    @property
    def records(self) -> list[MergeRecord]:
        return list(self._records.values())

    @property
    def has_pending(self) -> bool:
        """True when records changed since the last write to disk."""
        return self._dirty

    def write_merge_record(self, record: MergeRecord) -> None:
        """Persist a new record. Existing records are never overwritten."""
        if record.merge_id in self._records:
            raise StoreError(f"Merge record {record.merge_id} already exists")
        self._records[record.merge_id] = record
        try:
            self._changed()
        except StoreError:
            del self._records[record.merge_id]
            raise

    def get_merge_record(self, merge_id: str) -> MergeRecord:
        try:
            return self._records[merge_id]
        except KeyError:
            raise MergeRecordNotFoundError(merge_id) from None

    def mark_undone(self, merge_id: str) -> MergeRecord:
        """Stamp a record as undone. The only mutation a record ever sees."""
        record = self.get_merge_record(merge_id)
        updated = record.model_copy(
            update={"undone_at": datetime.now(timezone.utc), "is_undone": True}
        )
        self._records[merge_id] = updated
        self._changed()
        return updated

    def list_merge_records_for(self, uri: str) -> list[MergeRecord]:
        """Records where ``uri`` was the source or the target, newest first."""
        matches = [
            r for r in self._records.values()
            if r.source_uri == uri or r.target_uri == uri
        ]
        matches.sort(key=lambda r: r.merged_at, reverse=True)
        return matches

    def flush(self) -> None:
        """Write pending records to the YAML file (no-op when nothing changed)."""
        if not self._dirty:
            return
        if self.path is not None:
            write_audit_log(self.records, self.path)
        self._dirty = False

    def _changed(self) -> None:
        self._dirty = True
        if self.autoflush:
            self.flush()
