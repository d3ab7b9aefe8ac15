"""Tests for kg_resolve.resolve.scoring and the scoring config models."""

from datetime import datetime

import pydantic
import pytest

from kg_resolve.resolve.models import AttributeWeights, Thresholds
from kg_resolve.resolve.scoring import (
    EntitySimilarityScorer,
    comparable_properties,
    is_system_key,
    property_similarity,
)
from kg_resolve.resolve.similarity import string_similarity


class TestEntitySimilarityScorer:
    """Test attribute-weighted entity scoring."""

    def test_acme_pair_is_high_confidence(self, make_entity):
        a = make_entity("org:1", "Acme Corp", "Organization")
        b = make_entity("org:2", "ACME Corporation", "Organization")
        assert EntitySimilarityScorer().score(a, b) >= 0.85

    def test_only_shared_attributes_count(self, make_entity):
        """With only labels present, the score is the name similarity."""
        a = make_entity("e:1", "Acme Corp")
        b = make_entity("e:2", "ACME Corporation", "Organization")
        expected = string_similarity("Acme Corp", "ACME Corporation")
        assert EntitySimilarityScorer().score(a, b) == pytest.approx(expected)

    def test_nothing_comparable_scores_zero(self, make_entity):
        a = make_entity("e:1")
        b = make_entity("e:2")
        assert EntitySimilarityScorer().score(a, b) == 0.0

    def test_type_mismatch_lowers_score(self, make_entity):
        scorer = EntitySimilarityScorer()
        same = scorer.score(
            make_entity("e:1", "Jordan", "Person"),
            make_entity("e:2", "Jordan", "Person"),
        )
        different = scorer.score(
            make_entity("e:1", "Jordan", "Person"),
            make_entity("e:2", "Jordan", "Location"),
        )
        assert same == 1.0
        assert different < same

    def test_type_comparison_case_insensitive(self, make_entity):
        a = make_entity("e:1", "Jordan", "PERSON")
        b = make_entity("e:2", "Jordan", "person")
        assert EntitySimilarityScorer().score(a, b) == 1.0

    def test_description_uses_token_overlap(self, make_entity):
        scorer = EntitySimilarityScorer()
        a = make_entity("e:1", "Acme", description="builds rockets and anvils")
        b = make_entity("e:2", "Acme", description="builds rockets and anvils")
        c = make_entity("e:3", "Acme", description="sells insurance policies")
        assert scorer.score(a, b) == 1.0
        assert scorer.score(a, c) < scorer.score(a, b)

    def test_symmetric_and_bounded(self, make_entity):
        scorer = EntitySimilarityScorer()
        a = make_entity("e:1", "Alice Smith", "Person", role="CEO", city="Paris")
        b = make_entity("e:2", "Smith Alice", "Person", role="Chief Executive")
        assert scorer.score(a, b) == pytest.approx(scorer.score(b, a))
        assert 0.0 <= scorer.score(a, b) <= 1.0

    def test_per_call_weights(self, make_entity):
        """Weights passed to score() override the instance defaults."""
        a = make_entity("org:1", "Acme Corp", "Organization")
        b = make_entity("org:2", "ACME Corporation", "Bank")
        name_only = AttributeWeights(name=1.0, type=0.0, description=0.0, properties=0.0, relationships=0.0)
        scorer = EntitySimilarityScorer()
        assert scorer.score(a, b, weights=name_only) == pytest.approx(
            string_similarity("Acme Corp", "ACME Corporation")
        )
        assert scorer.score(a, b) < scorer.score(a, b, weights=name_only)

    def test_match_details(self, make_entity):
        a = make_entity("org:1", "Acme Corp", "Organization", founded="1949")
        b = make_entity("org:2", "Acme Corp", "organization", founded="1949")
        details = EntitySimilarityScorer().match_details(a, b)
        assert details.name_similarity == 1.0
        assert details.type_match is True
        assert details.description_similarity == 0.0
        assert details.property_similarity == 1.0
        assert details.shared_labels == ["Entity"]


class TestPropertySimilarity:
    """Test property-bag comparison."""

    def test_divides_by_larger_bag(self):
        assert property_similarity({"a": "x", "b": "y"}, {"a": "x"}) == pytest.approx(0.5)

    def test_no_shared_keys(self):
        assert property_similarity({"a": "x"}, {"b": "x"}) == 0.0

    def test_empty_bag(self):
        assert property_similarity({}, {"a": "x"}) == 0.0

    def test_non_string_values_compared_as_text(self):
        assert property_similarity({"year": 1949}, {"year": "1949"}) == 1.0

    def test_comparable_properties_filters_system_and_core_keys(self, make_entity):
        entity = make_entity(
            "e:1",
            "Acme",
            "Organization",
            description="text",
            created_at=datetime(2024, 1, 1),
            concept_id="c-1",
            _internal="x",
            merged_into="e:2",
            merge_count=3,
            empty="",
            founded="1949",
        )
        assert comparable_properties(entity) == {"founded": "1949"}

    @pytest.mark.parametrize("key,expected", [
        ("uri", True),
        ("concept_id", True),
        ("created_at", True),
        ("_source", True),
        ("founded", False),
        ("label", False),
    ])
    def test_is_system_key(self, key, expected):
        assert is_system_key(key) is expected


class TestScoringConfig:
    """Test threshold and weight validation."""

    def test_default_thresholds(self):
        t = Thresholds()
        assert (t.exact_match, t.high, t.medium, t.low, t.minimum) == (1.0, 0.85, 0.70, 0.55, 0.50)

    def test_thresholds_must_not_increase(self):
        with pytest.raises(pydantic.ValidationError, match="non-increasing"):
            Thresholds(high=0.6, medium=0.7)

    def test_default_weights(self):
        w = AttributeWeights()
        assert w.name + w.type + w.description + w.properties + w.relationships == pytest.approx(1.0)

    def test_weights_over_one_rejected(self):
        with pytest.raises(pydantic.ValidationError, match="at most 1.0"):
            AttributeWeights(name=0.9)

    def test_negative_weight_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            AttributeWeights(name=-0.1)
