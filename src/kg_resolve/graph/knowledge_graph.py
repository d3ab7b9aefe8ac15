"""Property graph store using NetworkX MultiDiGraph."""

import json
import logging
from collections import Counter
from datetime import datetime
from importlib.metadata import version as _get_version
from pathlib import Path
from typing import Any

try:
    __version__ = _get_version("kg-resolve")
except Exception:
    __version__ = "unknown"

import networkx as nx
from pydantic import ValidationError as PydanticValidationError

from kg_resolve.errors import EntityNotFoundError, StoreError
from kg_resolve.graph.models import (
    DEFAULT_EXCLUDED_LABELS,
    Direction,
    Edge,
    Entity,
    decode_properties,
    encode_properties,
)

logger = logging.getLogger(__name__)


class KnowledgeGraph:
    """NetworkX-backed property graph implementing the GraphStore protocol.

    Nodes are keyed by entity URI and carry ``node_labels`` and ``properties``.
    Edges are keyed by their type, so a (source, type, target) triple can only
    exist once and writing it again updates it in place.
    """

    def __init__(self, excluded_labels: tuple[str, ...] | list[str] = DEFAULT_EXCLUDED_LABELS) -> None:
        self.graph = nx.MultiDiGraph()
        self.created_at = datetime.now()
        self.updated_at = datetime.now()
        self.revision = 0
        self.excluded_labels = set(excluded_labels)

    @classmethod
    def load(
        cls,
        path: str | Path,
        excluded_labels: tuple[str, ...] | list[str] = DEFAULT_EXCLUDED_LABELS,
    ) -> "KnowledgeGraph":
        """Load graph from JSON file."""
        try:
            data = json.loads(Path(path).read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Could not read graph from {path}: {e}") from e

        kg = cls(excluded_labels=excluded_labels)

        metadata = data.get("metadata", {})
        created_at = metadata.get("created_at")
        if isinstance(created_at, str):
            try:
                kg.created_at = datetime.fromisoformat(created_at)
            except ValueError:
                pass

        try:
            for node in data.get("nodes", []):
                uri = node.get("id")
                if uri is None:
                    continue
                properties = decode_properties(node.get("properties", {}))
                properties.setdefault("uri", uri)
                # Validate the property bag before it enters the graph
                entity = Entity(
                    uri=uri,
                    properties=properties,
                    node_labels=node.get("labels", []),
                )
                kg.graph.add_node(
                    uri,
                    node_labels=list(entity.node_labels),
                    properties=dict(entity.properties),
                )

            for link in data.get("links", data.get("edges", [])):
                source = link.get("source")
                target = link.get("target")
                edge_type = link.get("type")
                if source is None or target is None or not edge_type:
                    continue
                edge = Edge(
                    source_uri=source,
                    target_uri=target,
                    edge_type=edge_type,
                    properties=decode_properties(link.get("properties", {})),
                )
                kg.graph.add_edge(
                    source,
                    target,
                    key=edge_type,
                    edge_type=edge_type,
                    properties=dict(edge.properties),
                )
        except PydanticValidationError as e:
            raise StoreError(f"Invalid graph data in {path}: {e}") from e

        return kg

    def add_entity(
        self,
        uri: str,
        label: str,
        entity_type: str = "",
        node_labels: list[str] | None = None,
        **properties: Any,
    ) -> Entity:
        """Add or update an entity node. Existing properties are overwritten."""
        props: dict[str, Any] = {"uri": uri, "label": label}
        if entity_type:
            props["type"] = entity_type
        props.update(properties)
        labels = node_labels if node_labels is not None else ["Entity"]

        if self.graph.has_node(uri):
            existing = self.graph.nodes[uri]
            existing["properties"].update(props)
            for node_label in labels:
                if node_label not in existing["node_labels"]:
                    existing["node_labels"].append(node_label)
        else:
            self.graph.add_node(uri, node_labels=list(labels), properties=props)
        self._touch()
        return self.get_entity(uri)

    def add_relation(
        self,
        source_uri: str,
        target_uri: str,
        edge_type: str,
        **properties: Any,
    ) -> bool:
        """Add a relation edge. Returns False if source/target missing."""
        if not self.graph.has_node(source_uri):
            logger.debug(f"Source entity {source_uri} not found, skipping relation")
            return False
        if not self.graph.has_node(target_uri):
            logger.debug(f"Target entity {target_uri} not found, skipping relation")
            return False
        self.upsert_edge(source_uri, target_uri, edge_type, properties)
        return True

    # ------------------------------------------------------------------
    # GraphStore protocol
    # ------------------------------------------------------------------

    def find_entities(
        self,
        type_filter: str | None = None,
        exclude_merged: bool = True,
        limit: int | None = None,
    ) -> list[Entity]:
        """Return resolvable entities ordered by label.

        Skips nodes without a label and structural carriers (documents,
        chunks, folders). ``type_filter`` matches either a structural node
        label or the ``type`` property, case-insensitively for the latter.
        """
        entities = []
        for uri, data in self.graph.nodes(data=True):
            props = data.get("properties", {})
            labels = data.get("node_labels", [])
            label = props.get("label")
            if not isinstance(label, str) or not label:
                continue
            if self.excluded_labels.intersection(labels):
                continue
            if type_filter:
                entity_type = props.get("type")
                type_match = isinstance(entity_type, str) and entity_type.lower() == type_filter.lower()
                if type_filter not in labels and not type_match:
                    continue
            if exclude_merged and props.get("merged_into"):
                continue
            entities.append(self._to_entity(uri, data))

        entities.sort(key=lambda e: (e.label, e.uri))
        if limit is not None:
            entities = entities[:limit]
        return entities

    def get_entity(self, uri: str) -> Entity:
        """Get entity by URI. Raises EntityNotFoundError if missing."""
        if not self.graph.has_node(uri):
            raise EntityNotFoundError([uri])
        return self._to_entity(uri, self.graph.nodes[uri])

    def get_entities(self, uris: list[str]) -> list[Entity]:
        """Fetch several entities at once, failing if any is missing."""
        missing = [uri for uri in uris if not self.graph.has_node(uri)]
        if missing:
            raise EntityNotFoundError(missing)
        return [self._to_entity(uri, self.graph.nodes[uri]) for uri in uris]

    def put_entity(
        self, uri: str, properties: dict[str, Any], node_labels: list[str]
    ) -> None:
        """Create a node, or replace an existing node's properties and labels.

        Edges of an existing node are left untouched.
        """
        props = dict(properties)
        props.setdefault("uri", uri)
        if self.graph.has_node(uri):
            node = self.graph.nodes[uri]
            node["properties"] = props
            node["node_labels"] = list(node_labels)
        else:
            self.graph.add_node(uri, node_labels=list(node_labels), properties=props)
        self._touch()

    def update_entity_properties(self, uri: str, properties: dict[str, Any]) -> None:
        """Merge properties onto an existing node (set semantics, not replace)."""
        if not self.graph.has_node(uri):
            raise EntityNotFoundError([uri])
        self.graph.nodes[uri]["properties"].update(properties)
        self._touch()

    def upsert_edge(
        self, from_uri: str, to_uri: str, edge_type: str, properties: dict[str, Any]
    ) -> bool:
        """Create or overwrite the single edge for (from, type, to).

        Returns True if a new edge was created, False if one was updated.
        """
        missing = [uri for uri in (from_uri, to_uri) if not self.graph.has_node(uri)]
        if missing:
            raise EntityNotFoundError(missing)

        if self.graph.has_edge(from_uri, to_uri, key=edge_type):
            self.graph.edges[from_uri, to_uri, edge_type]["properties"] = dict(properties)
            created = False
        else:
            self.graph.add_edge(
                from_uri,
                to_uri,
                key=edge_type,
                edge_type=edge_type,
                properties=dict(properties),
            )
            created = True
        self._touch()
        return created

    def list_edges(self, uri: str, direction: Direction = "both") -> list[Edge]:
        """Get edges for an entity. Direction: 'in', 'out', or 'both'."""
        if not self.graph.has_node(uri):
            raise EntityNotFoundError([uri])

        edges = []
        if direction in ("out", "both"):
            for src, tgt, data in self.graph.out_edges(uri, data=True):
                edges.append(self._to_edge(src, tgt, data))
        if direction in ("in", "both"):
            for src, tgt, data in self.graph.in_edges(uri, data=True):
                edges.append(self._to_edge(src, tgt, data))
        return edges

    def delete_entity(self, uri: str) -> None:
        """Remove a node together with all of its edges."""
        if not self.graph.has_node(uri):
            raise EntityNotFoundError([uri])
        try:
            self.graph.remove_node(uri)
        except nx.NetworkXError as e:
            raise StoreError(f"Could not delete {uri}: {e}") from e
        self._touch()

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def export(self) -> dict[str, Any]:
        """Export graph as JSON-serializable dict."""
        nodes = []
        for uri, data in self.graph.nodes(data=True):
            nodes.append({
                "id": uri,
                "labels": list(data.get("node_labels", [])),
                "properties": encode_properties(data.get("properties", {})),
            })

        links = []
        for source, target, _key, data in self.graph.edges(data=True, keys=True):
            links.append({
                "source": source,
                "target": target,
                "type": data.get("edge_type", _key),
                "properties": encode_properties(data.get("properties", {})),
            })

        label_counts = Counter(
            label
            for _, data in self.graph.nodes(data=True)
            for label in data.get("node_labels", [])
        )
        metadata = {
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "entity_count": self.graph.number_of_nodes(),
            "relation_count": self.graph.number_of_edges(),
            "node_label_summary": dict(label_counts),
            "kg_resolve_version": __version__,
        }

        return {"metadata": metadata, "nodes": nodes, "links": links}

    def save(self, path: str | Path) -> None:
        """Save graph to JSON file."""
        out = Path(path)
        try:
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text(json.dumps(self.export(), indent=2))
        except OSError as e:
            raise StoreError(f"Could not write graph to {out}: {e}") from e
        logger.info(
            f"Graph saved: {self.graph.number_of_nodes()} entities, "
            f"{self.graph.number_of_edges()} relations → {out}"
        )

    @property
    def entity_count(self) -> int:
        return self.graph.number_of_nodes()

    @property
    def relation_count(self) -> int:
        return self.graph.number_of_edges()

    def _touch(self) -> None:
        self.updated_at = datetime.now()
        self.revision += 1

    @staticmethod
    def _to_entity(uri: str, data: dict[str, Any]) -> Entity:
        return Entity(
            uri=uri,
            properties=dict(data.get("properties", {})),
            node_labels=list(data.get("node_labels", [])),
        )

    @staticmethod
    def _to_edge(source: str, target: str, data: dict[str, Any]) -> Edge:
        return Edge(
            source_uri=source,
            target_uri=target,
            edge_type=data["edge_type"],
            properties=dict(data.get("properties", {})),
        )
