"""Schema inference from sampled records."""

from .inference import (
    DEFAULT_SAMPLE_SIZE,
    fetch_all_models_metadata,
    infer_fields,
    infer_schema,
    infer_value_type,
    merge_types,
)
from .types import ModelMetadata, PropertyMetadata, TypeTag

__all__ = [
    "DEFAULT_SAMPLE_SIZE",
    "fetch_all_models_metadata",
    "infer_fields",
    "infer_schema",
    "infer_value_type",
    "merge_types",
    "ModelMetadata",
    "PropertyMetadata",
    "TypeTag",
]
