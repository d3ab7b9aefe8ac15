"""Exception hierarchy for entity resolution.

Single-pair operations raise these directly. The batch auto-resolver catches
``ResolutionError`` per candidate and records it instead of aborting.
"""


class ResolutionError(Exception):
    """Base class for every error raised by the resolution engine."""


class NotFoundError(ResolutionError):
    """A requested entity or merge record does not exist."""


class EntityNotFoundError(NotFoundError):
    """One or more entity URIs are not present in the graph store."""

    def __init__(self, uris: list[str]):
        self.uris = list(uris)
        super().__init__(f"Entity not found: {', '.join(self.uris)}")


class MergeRecordNotFoundError(NotFoundError):
    """No merge record exists for the given merge id."""

    def __init__(self, merge_id: str):
        self.merge_id = merge_id
        super().__init__(f"Merge record not found: {merge_id}")


class ValidationError(ResolutionError):
    """A request is missing required identifiers or is otherwise malformed."""


class StoreError(ResolutionError):
    """Wraps a failure of the underlying graph store or audit log."""
