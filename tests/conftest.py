"""Shared test fixtures for kg-resolve."""

import tempfile
from pathlib import Path

import pytest

from kg_resolve.graph.knowledge_graph import KnowledgeGraph
from kg_resolve.graph.models import Entity
from kg_resolve.resolve.io import AuditLog
from kg_resolve.resolve.service import ResolutionService


@pytest.fixture
def make_entity():
    """Factory for detached Entity objects (no graph needed)."""

    def _make(uri: str, label: str = "", entity_type: str = "", **properties) -> Entity:
        props = {"uri": uri, **properties}
        if label:
            props["label"] = label
        if entity_type:
            props["type"] = entity_type
        return Entity(uri=uri, properties=props, node_labels=["Entity"])

    return _make


@pytest.fixture
def tmp_dir():
    """Temporary directory that cleans up after test."""
    with tempfile.TemporaryDirectory() as d:
        yield Path(d)


@pytest.fixture
def sample_graph() -> KnowledgeGraph:
    """Small graph with two duplicate pairs and one structural document node.

    Duplicates: org:acme-corporation ~ org:acme and person:alice ~ person:alice-smyth.
    """
    kg = KnowledgeGraph()
    kg.add_entity(
        "org:acme",
        "Acme Corp",
        "Organization",
        description="Acme Corp builds rockets and anvils",
        founded="1949",
        ticker="ACME",
    )
    kg.add_entity(
        "org:acme-corporation",
        "ACME Corporation",
        "Organization",
        founded="1949",
        ticker="ACME",
    )
    kg.add_entity("person:alice", "Alice Smith", "Person", role="CEO")
    kg.add_entity("person:alice-smyth", "Alice Smyth", "Person", role="CEO")
    kg.add_entity("place:nyc", "New York", "Location")
    kg.add_entity(
        "doc:report",
        "Acme Corp annual report",
        node_labels=["Document"],
    )

    kg.add_relation("person:alice", "org:acme-corporation", "WORKS_FOR", since="2019")
    kg.add_relation("org:acme-corporation", "place:nyc", "LOCATED_IN")
    kg.add_relation("doc:report", "org:acme-corporation", "MENTIONS")
    kg.add_relation("org:acme", "place:nyc", "LOCATED_IN", source="registry")
    return kg


@pytest.fixture
def audit_log() -> AuditLog:
    """In-memory audit log."""
    return AuditLog()


@pytest.fixture
def service(sample_graph, audit_log) -> ResolutionService:
    """ResolutionService over the sample graph with default settings."""
    return ResolutionService(sample_graph, audit_log)


@pytest.fixture
def similar_graph() -> KnowledgeGraph:
    """Twelve near-identical entities: every pair is a strong candidate."""
    kg = KnowledgeGraph()
    for i in range(12):
        kg.add_entity(f"thing:{i}", f"Entity {i}", "Thing")
    return kg
