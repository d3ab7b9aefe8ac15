"""Pydantic models for graph entities and edges.

Entity properties form an open, string-keyed bag of scalar values. The value
type is a tagged union (string, integer, float, boolean, timestamp) and must
survive a trip through JSON or YAML unchanged, so timestamps are written as a
``{"$timestamp": "<iso8601>"}`` object rather than a bare string.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

PropertyValue = str | bool | int | float | datetime
Properties = dict[str, PropertyValue]
Direction = Literal["out", "in", "both"]

TIMESTAMP_TAG = "$timestamp"

# Structural node kinds that carry documents, never real-world entities
DEFAULT_EXCLUDED_LABELS = ("Document", "Chunk", "Folder")


class Entity(BaseModel):
    """A graph node: a URI, its structural tags, and a flat property map.

    ``properties`` holds every node property including ``uri``, ``label``,
    ``type`` and ``description``; the accessors below read from it.
    """

    uri: str
    properties: Properties = Field(default_factory=dict)
    node_labels: list[str] = Field(default_factory=list)

    @property
    def label(self) -> str:
        value = self.properties.get("label")
        return value if isinstance(value, str) else ""

    @property
    def type(self) -> str:
        value = self.properties.get("type")
        return value if isinstance(value, str) else ""

    @property
    def description(self) -> str:
        value = self.properties.get("description")
        return value if isinstance(value, str) else ""

    @property
    def merged_into(self) -> str | None:
        value = self.properties.get("merged_into")
        return value if isinstance(value, str) and value else None


class Edge(BaseModel):
    """A directed, typed relationship. At most one per (source, type, target)."""

    source_uri: str
    target_uri: str
    edge_type: str
    properties: Properties = Field(default_factory=dict)


def encode_value(value: Any) -> Any:
    """Encode one property value for JSON/YAML output."""
    if isinstance(value, datetime):
        return {TIMESTAMP_TAG: value.isoformat()}
    return value


def decode_value(value: Any) -> Any:
    """Inverse of :func:`encode_value`."""
    if isinstance(value, dict) and set(value) == {TIMESTAMP_TAG}:
        return datetime.fromisoformat(value[TIMESTAMP_TAG])
    return value


def encode_properties(properties: dict[str, Any]) -> dict[str, Any]:
    return {key: encode_value(value) for key, value in properties.items()}


def decode_properties(properties: dict[str, Any]) -> dict[str, Any]:
    return {key: decode_value(value) for key, value in properties.items()}
