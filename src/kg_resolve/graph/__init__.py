"""Property graph storage.

Defines the GraphStore protocol the resolution engine consumes and a
NetworkX-based implementation persisted as JSON.
"""

from kg_resolve.graph.knowledge_graph import KnowledgeGraph
from kg_resolve.graph.models import Edge, Entity
from kg_resolve.graph.store import GraphStore

__all__ = ["Edge", "Entity", "GraphStore", "KnowledgeGraph"]
