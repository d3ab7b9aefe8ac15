"""Pydantic models for duplicate detection, merges and the audit trail.

Three groups:
  1. Scoring configuration: thresholds and attribute weights
  2. Candidates: ephemeral scored pairs returned by the finder
  3. Merges: results, immutable audit records, undo and batch reports
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from kg_resolve.graph.models import Entity, Properties

MergeStrategy = Literal["prefer_target", "prefer_source", "merge_all"]
MERGE_STRATEGIES: tuple[str, ...] = ("prefer_target", "prefer_source", "merge_all")

ConfidenceLevel = Literal["exact", "high", "medium", "low", "uncertain"]


# ============================================================================
# Scoring Configuration
# ============================================================================


class Thresholds(BaseModel):
    """Score bands used to label candidates and filter them."""

    exact_match: float = Field(default=1.0, ge=0.0, le=1.0)
    high: float = Field(default=0.85, ge=0.0, le=1.0)
    medium: float = Field(default=0.70, ge=0.0, le=1.0)
    low: float = Field(default=0.55, ge=0.0, le=1.0)
    minimum: float = Field(default=0.50, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_ordering(self) -> "Thresholds":
        bands = [self.exact_match, self.high, self.medium, self.low, self.minimum]
        if bands != sorted(bands, reverse=True):
            raise ValueError(
                "Thresholds must be non-increasing: exact_match >= high >= medium >= low >= minimum"
            )
        return self


class AttributeWeights(BaseModel):
    """Contribution of each attribute to the overall entity score.

    Attributes missing on either entity drop out and the remaining weights
    are renormalized. ``relationships`` is reserved for neighbourhood
    comparison and is not scored by the attribute scorer.
    """

    name: float = Field(default=0.4, ge=0.0)
    type: float = Field(default=0.2, ge=0.0)
    description: float = Field(default=0.15, ge=0.0)
    properties: float = Field(default=0.15, ge=0.0)
    relationships: float = Field(default=0.10, ge=0.0)

    @model_validator(mode="after")
    def _check_total(self) -> "AttributeWeights":
        total = self.name + self.type + self.description + self.properties + self.relationships
        if total > 1.0 + 1e-9:
            raise ValueError(f"Attribute weights must sum to at most 1.0 (got {total:.3f})")
        return self


# ============================================================================
# Candidate Models
# ============================================================================


class MatchDetails(BaseModel):
    """Per-attribute breakdown explaining a candidate's score."""

    name_similarity: float = 0.0
    type_match: bool = False
    description_similarity: float = 0.0
    property_similarity: float = 0.0
    shared_labels: list[str] = Field(default_factory=list)


class SimilarityCandidate(BaseModel):
    """A pair of entities suspected to be duplicates. Never persisted."""

    entity1: Entity
    entity2: Entity
    score: float = Field(ge=0.0, le=1.0)
    confidence_level: ConfidenceLevel
    match_details: MatchDetails


class CandidateResult(BaseModel):
    """Ranked candidates plus the thresholds that produced them."""

    candidates: list[SimilarityCandidate] = Field(default_factory=list)
    total_found: int = 0
    thresholds: Thresholds = Field(default_factory=Thresholds)


# ============================================================================
# Merge Models
# ============================================================================


class MergeResult(BaseModel):
    """Outcome of consolidating a source entity into a target."""

    merge_id: str
    target_uri: str
    source_deleted: bool
    relationships_transferred: int = 0
    score: float | None = None  # Set by the auto-resolver


class MergeRecord(BaseModel):
    """Immutable audit entry capturing enough state to reverse a merge.

    Only ``undone_at`` / ``is_undone`` may change after creation, and only
    through ``AuditSink.mark_undone`` (which stores an updated copy).
    """

    model_config = ConfigDict(frozen=True)

    merge_id: str
    merged_at: datetime
    merged_by: str = "system"
    source_uri: str
    target_uri: str
    strategy: MergeStrategy
    source_snapshot: Properties
    target_snapshot: Properties
    source_node_labels: list[str] = Field(default_factory=list)
    undone_at: datetime | None = None
    is_undone: bool = False


class UndoResult(BaseModel):
    """Outcome of reversing a merge."""

    merge_id: str
    restored_uri: str
    message: str


class MergePreview(BaseModel):
    """A merge the auto-resolver would perform in dry-run mode."""

    source: str
    target: str
    score: float
    would_merge: bool = True


class MergeFailure(BaseModel):
    """A candidate merge that raised during a live batch."""

    source: str
    target: str
    error: str


class AutoResolveResult(BaseModel):
    """Counters and per-candidate outcomes of a batch auto-resolve run."""

    dry_run: bool = True
    processed: int = 0
    merged: int = 0
    skipped: int = 0
    errors: list[MergeFailure] = Field(default_factory=list)
    merges: list[MergeResult | MergePreview] = Field(default_factory=list)
