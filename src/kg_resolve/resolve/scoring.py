"""Attribute-weighted similarity between two entities."""

import logging
from typing import Any

from kg_resolve.graph.models import Entity
from kg_resolve.resolve.models import AttributeWeights, MatchDetails
from kg_resolve.resolve.similarity import string_similarity, token_similarity

logger = logging.getLogger(__name__)

# Keys that are scored as their own attribute, not as part of the property bag
CORE_KEYS = frozenset({"uri", "label", "type", "description"})

# Keys that never describe the real-world thing
SYSTEM_KEYS = frozenset({"uri", "concept_id", "created_at"})

# Written by the merge engine itself
MERGE_BOOKKEEPING_KEYS = frozenset({
    "merged_into",
    "merged_at",
    "is_canonical",
    "merge_count",
    "last_merged_at",
})


def is_system_key(key: str) -> bool:
    """True for identity/system keys and any underscore-prefixed key."""
    return key.startswith("_") or key in SYSTEM_KEYS


def comparable_properties(entity: Entity) -> dict[str, Any]:
    """The free-form property bag used for property-level comparison."""
    return {
        key: value
        for key, value in entity.properties.items()
        if key not in CORE_KEYS
        and key not in MERGE_BOOKKEEPING_KEYS
        and not is_system_key(key)
        and value is not None
        and value != ""
    }


def property_similarity(props_a: dict[str, Any], props_b: dict[str, Any]) -> float:
    """Mean string similarity over shared keys, divided by the larger key set.

    Dividing by ``max(len(a), len(b))`` rather than the number of shared keys
    penalizes bags that only partly overlap.
    """
    if not props_a or not props_b:
        return 0.0

    common = [key for key in props_a if key in props_b]
    if not common:
        return 0.0

    total = sum(string_similarity(str(props_a[key]), str(props_b[key])) for key in common)
    return total / max(len(props_a), len(props_b))


class EntitySimilarityScorer:
    """Combines name, type, description and property similarity into one score.

    Each attribute contributes only when present and non-empty on both
    entities; the result is the weighted mean over contributing attributes,
    so it always lies in [0, 1].
    """

    def __init__(self, weights: AttributeWeights | None = None) -> None:
        self.weights = weights or AttributeWeights()

    def score(
        self,
        entity_a: Entity,
        entity_b: Entity,
        weights: AttributeWeights | None = None,
    ) -> float:
        """Overall similarity of two entities in [0, 1]."""
        w = weights or self.weights
        total = 0.0
        total_weight = 0.0

        if entity_a.label and entity_b.label:
            total += string_similarity(entity_a.label, entity_b.label) * w.name
            total_weight += w.name

        if entity_a.type and entity_b.type:
            type_sim = 1.0 if entity_a.type.lower() == entity_b.type.lower() else 0.0
            total += type_sim * w.type
            total_weight += w.type

        if entity_a.description and entity_b.description:
            total += token_similarity(entity_a.description, entity_b.description) * w.description
            total_weight += w.description

        props_a = comparable_properties(entity_a)
        props_b = comparable_properties(entity_b)
        if props_a and props_b:
            total += property_similarity(props_a, props_b) * w.properties
            total_weight += w.properties

        if total_weight <= 0:
            return 0.0
        return min(1.0, max(0.0, total / total_weight))

    def match_details(self, entity_a: Entity, entity_b: Entity) -> MatchDetails:
        """Per-attribute breakdown for display next to a candidate."""
        shared = [label for label in entity_a.node_labels if label in entity_b.node_labels]
        return MatchDetails(
            name_similarity=string_similarity(entity_a.label, entity_b.label),
            type_match=entity_a.type.lower() == entity_b.type.lower(),
            description_similarity=token_similarity(entity_a.description, entity_b.description),
            property_similarity=property_similarity(
                comparable_properties(entity_a), comparable_properties(entity_b)
            ),
            shared_labels=shared,
        )
