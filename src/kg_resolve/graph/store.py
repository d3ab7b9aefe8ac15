"""GraphStore protocol consumed by the resolution engine.

The engine never talks to a concrete database. Anything that implements these
methods (the bundled NetworkX ``KnowledgeGraph``, a Neo4j adapter, a test
double) can back candidate search, merging and undo.
"""

from typing import Any, Protocol

from kg_resolve.graph.models import Direction, Edge, Entity


class GraphStore(Protocol):
    """Protocol for property-graph storage backends.

    Implementations must provide:
    - find_entities(type_filter, exclude_merged, limit) -> entities ordered by label
    - get_entity(uri) / get_entities(uris) -> raise EntityNotFoundError when missing
    - put_entity(uri, properties, node_labels) -> create or replace a node
    - update_entity_properties(uri, props) -> merge props onto a node
    - upsert_edge(from_uri, to_uri, edge_type, props) -> True if a new edge was created
    - list_edges(uri, direction) -> edges touching a node
    - delete_entity(uri) -> remove a node and every incident edge

    Failures of the backend itself are raised as StoreError.
    """

    def find_entities(
        self,
        type_filter: str | None = None,
        exclude_merged: bool = True,
        limit: int | None = None,
    ) -> list[Entity]: ...

    def get_entity(self, uri: str) -> Entity: ...

    def get_entities(self, uris: list[str]) -> list[Entity]: ...

    def put_entity(
        self, uri: str, properties: dict[str, Any], node_labels: list[str]
    ) -> None: ...

    def update_entity_properties(self, uri: str, properties: dict[str, Any]) -> None: ...

    def upsert_edge(
        self, from_uri: str, to_uri: str, edge_type: str, properties: dict[str, Any]
    ) -> bool: ...

    def list_edges(self, uri: str, direction: Direction = "both") -> list[Edge]: ...

    def delete_entity(self, uri: str) -> None: ...
