"""
Field type inference from sampled records.

There is no schema endpoint for most models, so types are guessed from a
handful of records: each value is classified, the tags seen per field are
collected, and the set is resolved to one tag.

Conflict resolution is a heuristic: ref > string > datetime > date > number >
integer, else string. It prefers a lossless text type when numbers and
strings are mixed; it is not meant to be right for every dataset (a
boolean/string mix, for example, simply becomes string).
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from ..errors import SpintaError
from ..query.builder import QueryBuilder
from .types import ModelMetadata, PropertyMetadata, TypeTag

if TYPE_CHECKING:
    from ..client.client import SpintaClient

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 10

# Well-known text, with or without an EWKT "SRID=4326;" prefix
GEOMETRY_PATTERN = re.compile(
    r"^(SRID=\d+;\s*)?"
    r"(POINT|LINESTRING|POLYGON|MULTIPOINT|MULTILINESTRING|MULTIPOLYGON|GEOMETRYCOLLECTION)"
    r"(\s+(Z|M|ZM))?\s*(\(|EMPTY\b)",
    re.IGNORECASE,
)
DATETIME_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
URL_PATTERN = re.compile(r"^(https?|ftp)://\S+$", re.IGNORECASE)
FILE_EXTENSION_PATTERN = re.compile(
    r"\.(pdf|docx?|xlsx?|odt|ods|csv|tsv|txt|rtf|json|xml|zip|gz|rar|7z|"
    r"png|jpe?g|gif|tiff?|svg|bmp|mp3|mp4|avi|shp|geojson)([?#].*)?$",
    re.IGNORECASE,
)

FILE_MARKERS = ("_content_type", "content_type")

# Highest priority first
CONFLICT_PRIORITY = (
    TypeTag.REF,
    TypeTag.STRING,
    TypeTag.DATETIME,
    TypeTag.DATE,
    TypeTag.NUMBER,
    TypeTag.INTEGER,
)


def _classify_string(value: str) -> TypeTag:
    if GEOMETRY_PATTERN.match(value):
        return TypeTag.GEOMETRY
    if DATETIME_PATTERN.match(value):
        return TypeTag.DATETIME
    if DATE_PATTERN.match(value):
        return TypeTag.DATE
    if UUID_PATTERN.match(value):
        return TypeTag.REF
    if URL_PATTERN.match(value):
        return TypeTag.FILE if FILE_EXTENSION_PATTERN.search(value) else TypeTag.URL
    return TypeTag.STRING


def _classify_object(value: Mapping[str, Any]) -> TypeTag:
    # A file object also carries an _id, so check file markers first
    if any(marker in value for marker in FILE_MARKERS):
        return TypeTag.FILE
    if isinstance(value.get("_id"), str):
        return TypeTag.REF
    return TypeTag.OBJECT


def infer_value_type(value: Any) -> TypeTag:
    """Classify a single JSON value."""
    if value is None:
        return TypeTag.UNKNOWN
    if isinstance(value, bool):
        return TypeTag.BOOLEAN
    if isinstance(value, int):
        return TypeTag.INTEGER
    if isinstance(value, float):
        return TypeTag.INTEGER if value.is_integer() else TypeTag.NUMBER
    if isinstance(value, str):
        return _classify_string(value)
    if isinstance(value, Mapping):
        return _classify_object(value)
    if isinstance(value, (list, tuple)):
        return TypeTag.ARRAY
    return TypeTag.UNKNOWN


def merge_types(tags: Iterable[TypeTag]) -> TypeTag:
    """Resolve the tags observed for one field to a single tag."""
    concrete = {t for t in tags if t != TypeTag.UNKNOWN}
    if not concrete:
        return TypeTag.UNKNOWN
    if len(concrete) == 1:
        return next(iter(concrete))
    for tag in CONFLICT_PRIORITY:
        if tag in concrete:
            return tag
    return TypeTag.STRING


def infer_fields(records: Iterable[Mapping[str, Any]]) -> dict[str, TypeTag]:
    """
    Infer a type per field across records.

    Internal fields (leading underscore) are skipped. Fields keep the order in
    which they were first seen.
    """
    observed: dict[str, set[TypeTag]] = {}
    for record in records:
        for key, value in record.items():
            if key.startswith("_"):
                continue
            observed.setdefault(key, set()).add(infer_value_type(value))
    return {name: merge_types(tags) for name, tags in observed.items()}


def infer_schema(
    client: SpintaClient,
    model: str,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> ModelMetadata:
    """Sample `sample_size` records of a model and infer its properties."""
    records = client.get_all(model, QueryBuilder().limit(sample_size))
    fields = infer_fields(records)
    logger.debug(f"Inferred {len(fields)} fields for {model} from {len(records)} records")
    return ModelMetadata(
        path=model,
        properties=[PropertyMetadata(name, tag.value) for name, tag in fields.items()],
        sample_size=len(records),
    )


def fetch_all_models_metadata(
    client: SpintaClient,
    model_paths: Iterable[str],
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> list[ModelMetadata]:
    """
    Infer schemas for several models.

    A model that cannot be sampled is reported with no properties instead of
    aborting the whole run.
    """
    results = []
    for path in model_paths:
        try:
            results.append(infer_schema(client, path, sample_size))
        except SpintaError as e:
            logger.warning(f"Could not sample {path}: {e.message}")
            results.append(ModelMetadata(path=path))
    return results
