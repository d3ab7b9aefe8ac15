"""Tests for kg_resolve.graph (KnowledgeGraph store and serialization)."""

import json
from datetime import datetime, timezone

import pytest

from kg_resolve.errors import EntityNotFoundError, StoreError
from kg_resolve.graph.knowledge_graph import KnowledgeGraph
from kg_resolve.graph.models import decode_value, encode_value


class TestKnowledgeGraph:
    """Test KnowledgeGraph CRUD."""

    def test_add_entity(self):
        kg = KnowledgeGraph()
        entity = kg.add_entity("person:alice", "Alice", "Person", role="CEO")
        assert kg.entity_count == 1
        assert entity.label == "Alice"
        assert entity.type == "Person"
        assert entity.properties["role"] == "CEO"
        assert entity.properties["uri"] == "person:alice"
        assert entity.node_labels == ["Entity"]

    def test_add_entity_twice_updates(self):
        kg = KnowledgeGraph()
        kg.add_entity("person:alice", "Alice", "Person", role="CEO")
        kg.add_entity("person:alice", "Alice", "Person", city="Paris", node_labels=["Person"])
        entity = kg.get_entity("person:alice")
        assert entity.properties["role"] == "CEO"
        assert entity.properties["city"] == "Paris"
        assert entity.node_labels == ["Entity", "Person"]

    def test_add_relation(self):
        kg = KnowledgeGraph()
        kg.add_entity("person:alice", "Alice")
        kg.add_entity("org:acme", "Acme")
        assert kg.add_relation("person:alice", "org:acme", "WORKS_FOR") is True
        assert kg.relation_count == 1

    def test_add_relation_missing_entity(self):
        kg = KnowledgeGraph()
        kg.add_entity("person:alice", "Alice")
        assert kg.add_relation("person:alice", "org:ghost", "WORKS_FOR") is False
        assert kg.relation_count == 0

    def test_get_entity_missing(self):
        with pytest.raises(EntityNotFoundError, match="person:ghost"):
            KnowledgeGraph().get_entity("person:ghost")

    def test_get_entities_reports_all_missing(self, sample_graph):
        with pytest.raises(EntityNotFoundError) as exc_info:
            sample_graph.get_entities(["org:acme", "x:1", "x:2"])
        assert exc_info.value.uris == ["x:1", "x:2"]

    def test_get_entities_order(self, sample_graph):
        entities = sample_graph.get_entities(["place:nyc", "org:acme"])
        assert [e.uri for e in entities] == ["place:nyc", "org:acme"]

    def test_returned_entities_are_copies(self, sample_graph):
        entity = sample_graph.get_entity("org:acme")
        entity.properties["label"] = "Changed"
        assert sample_graph.get_entity("org:acme").label == "Acme Corp"


class TestFindEntities:
    """Test entity listing for resolution."""

    def test_ordered_by_label(self, sample_graph):
        labels = [e.label for e in sample_graph.find_entities()]
        assert labels == sorted(labels)

    def test_structural_kinds_excluded(self, sample_graph):
        uris = {e.uri for e in sample_graph.find_entities()}
        assert "doc:report" not in uris
        assert len(uris) == 5

    def test_custom_excluded_labels(self):
        kg = KnowledgeGraph(excluded_labels=["Draft"])
        kg.add_entity("a", "A", node_labels=["Draft"])
        kg.add_entity("b", "B", node_labels=["Document"])
        assert [e.uri for e in kg.find_entities()] == ["b"]

    def test_unlabelled_nodes_skipped(self):
        kg = KnowledgeGraph()
        kg.put_entity("x:1", {"type": "Thing"}, ["Entity"])
        kg.add_entity("x:2", "Named")
        assert [e.uri for e in kg.find_entities()] == ["x:2"]

    def test_type_filter_matches_node_label(self):
        kg = KnowledgeGraph()
        kg.add_entity("a", "Alpha", node_labels=["Person"])
        kg.add_entity("b", "Beta", node_labels=["Place"])
        assert [e.uri for e in kg.find_entities(type_filter="Person")] == ["a"]

    def test_limit(self, sample_graph):
        assert len(sample_graph.find_entities(limit=2)) == 2

    def test_merged_excluded(self, sample_graph):
        sample_graph.update_entity_properties("org:acme", {"merged_into": "org:other"})
        assert "org:acme" not in {e.uri for e in sample_graph.find_entities()}
        assert "org:acme" in {e.uri for e in sample_graph.find_entities(exclude_merged=False)}


class TestGraphMutation:
    """Test the write side of the store."""

    def test_put_entity_replaces_properties(self, sample_graph):
        sample_graph.put_entity("org:acme", {"label": "New"}, ["Organization"])
        entity = sample_graph.get_entity("org:acme")
        assert entity.properties == {"label": "New", "uri": "org:acme"}
        assert entity.node_labels == ["Organization"]
        # Edges untouched
        assert len(sample_graph.list_edges("org:acme")) == 1

    def test_update_entity_properties_merges(self, sample_graph):
        sample_graph.update_entity_properties("org:acme", {"hq": "Phoenix"})
        entity = sample_graph.get_entity("org:acme")
        assert entity.properties["hq"] == "Phoenix"
        assert entity.properties["founded"] == "1949"

    def test_update_missing_entity(self):
        with pytest.raises(EntityNotFoundError):
            KnowledgeGraph().update_entity_properties("x", {"a": "b"})

    def test_upsert_edge(self, sample_graph):
        created = sample_graph.upsert_edge("person:alice", "org:acme", "WORKS_FOR", {"since": "2020"})
        updated = sample_graph.upsert_edge("person:alice", "org:acme", "WORKS_FOR", {"since": "2021"})
        assert created is True
        assert updated is False
        edges = [e for e in sample_graph.list_edges("org:acme", "in") if e.edge_type == "WORKS_FOR"]
        assert len(edges) == 1
        assert edges[0].properties == {"since": "2021"}

    def test_parallel_edges_of_different_types(self, sample_graph):
        sample_graph.upsert_edge("person:alice", "org:acme", "WORKS_FOR", {})
        sample_graph.upsert_edge("person:alice", "org:acme", "OWNS", {})
        types = {e.edge_type for e in sample_graph.list_edges("org:acme", "in")}
        assert types == {"WORKS_FOR", "OWNS"}

    def test_upsert_edge_missing_endpoint(self, sample_graph):
        with pytest.raises(EntityNotFoundError):
            sample_graph.upsert_edge("person:alice", "org:ghost", "WORKS_FOR", {})

    def test_list_edges_direction(self, sample_graph):
        out_edges = sample_graph.list_edges("org:acme-corporation", "out")
        in_edges = sample_graph.list_edges("org:acme-corporation", "in")
        both = sample_graph.list_edges("org:acme-corporation")
        assert {e.target_uri for e in out_edges} == {"place:nyc"}
        assert {e.source_uri for e in in_edges} == {"person:alice", "doc:report"}
        assert len(both) == 3

    def test_delete_entity_removes_edges(self, sample_graph):
        sample_graph.delete_entity("org:acme-corporation")
        assert not sample_graph.graph.has_node("org:acme-corporation")
        assert sample_graph.relation_count == 1

    def test_delete_missing(self):
        with pytest.raises(EntityNotFoundError):
            KnowledgeGraph().delete_entity("x")

    def test_revision_tracks_writes(self, sample_graph):
        start = sample_graph.revision
        sample_graph.find_entities()
        sample_graph.get_entity("org:acme")
        assert sample_graph.revision == start
        sample_graph.update_entity_properties("org:acme", {"hq": "Phoenix"})
        assert sample_graph.revision > start


class TestGraphSerialization:
    """Test JSON persistence."""

    def test_save_load_round_trip(self, sample_graph, tmp_dir):
        stamp = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
        sample_graph.update_entity_properties(
            "org:acme", {"last_seen": stamp, "employees": 120, "public": True, "rating": 4.5}
        )
        path = tmp_dir / "graph.json"
        sample_graph.save(path)

        loaded = KnowledgeGraph.load(path)
        assert loaded.entity_count == sample_graph.entity_count
        assert loaded.relation_count == sample_graph.relation_count
        for uri in ("org:acme", "doc:report", "person:alice"):
            original = sample_graph.get_entity(uri)
            restored = loaded.get_entity(uri)
            assert restored.properties == original.properties
            assert restored.node_labels == original.node_labels

        props = loaded.get_entity("org:acme").properties
        assert props["last_seen"] == stamp
        assert props["employees"] == 120 and isinstance(props["employees"], int)
        assert props["public"] is True

    def test_edges_survive_round_trip(self, sample_graph, tmp_dir):
        path = tmp_dir / "graph.json"
        sample_graph.save(path)
        loaded = KnowledgeGraph.load(path)
        works_for = [e for e in loaded.list_edges("person:alice", "out") if e.edge_type == "WORKS_FOR"]
        assert works_for[0].properties == {"since": "2019"}

    def test_timestamp_tagged_in_json(self, tmp_dir):
        kg = KnowledgeGraph()
        kg.add_entity("a", "A", seen=datetime(2024, 1, 1, tzinfo=timezone.utc))
        path = tmp_dir / "graph.json"
        kg.save(path)
        data = json.loads(path.read_text())
        assert data["nodes"][0]["properties"]["seen"] == {"$timestamp": "2024-01-01T00:00:00+00:00"}

    def test_export_metadata(self, sample_graph):
        metadata = sample_graph.export()["metadata"]
        assert metadata["entity_count"] == 6
        assert metadata["relation_count"] == 4
        assert metadata["node_label_summary"] == {"Entity": 5, "Document": 1}

    def test_load_missing_file(self, tmp_dir):
        with pytest.raises(StoreError, match="Could not read graph"):
            KnowledgeGraph.load(tmp_dir / "missing.json")

    def test_load_invalid_json(self, tmp_dir):
        path = tmp_dir / "broken.json"
        path.write_text("{not json")
        with pytest.raises(StoreError):
            KnowledgeGraph.load(path)

    def test_load_invalid_property_value(self, tmp_dir):
        path = tmp_dir / "bad.json"
        path.write_text(json.dumps({
            "nodes": [{"id": "a", "labels": ["Entity"], "properties": {"tags": ["x", "y"]}}],
            "links": [],
        }))
        with pytest.raises(StoreError, match="Invalid graph data"):
            KnowledgeGraph.load(path)


class TestValueEncoding:
    """Test tagged timestamp encoding."""

    def test_scalars_pass_through(self):
        for value in ("text", 3, 2.5, True):
            assert encode_value(value) == value
            assert decode_value(value) == value

    def test_timestamp(self):
        stamp = datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)
        assert decode_value(encode_value(stamp)) == stamp

    def test_timestamp_lookalike_string_stays_string(self):
        assert decode_value("2024-05-06T07:08:09") == "2024-05-06T07:08:09"
