"""Schema types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class TypeTag(str, Enum):
    """Field type as observed in sampled data.

    Names follow the Spinta type vocabulary so inferred schemas read like
    declared ones.
    """
    UNKNOWN = "unknown"    # only nulls seen
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"          # 2024-01-01
    DATETIME = "datetime"  # 2024-01-01T10:00:00
    GEOMETRY = "geometry"  # WKT, optionally SRID=4326;...
    REF = "ref"            # UUID or {"_id": "..."}
    URL = "url"
    FILE = "file"          # file object or URL to a document
    ARRAY = "array"
    OBJECT = "object"


@dataclass
class PropertyMetadata:
    name: str
    type: str


@dataclass
class ModelMetadata:
    """Model path plus its (inferred) properties."""
    path: str
    properties: list[PropertyMetadata] = field(default_factory=list)
    sample_size: int = 0

    def get_property(self, name: str) -> PropertyMetadata | None:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None
