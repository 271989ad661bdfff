"""
Mapping package for the AS400 data-access layer.

Holds the per-type registries (column metadata, schema resolution) and the
hydration pipeline that converts between raw rows and mapped records.
"""

from as400_dal.mapping.hydrator import Dehydrator, Hydrator, parse_temporal
from as400_dal.mapping.metadata import MetadataRegistry, infer_column_type
from as400_dal.mapping.schema import SchemaResolver

__all__ = [
    "Dehydrator",
    "Hydrator",
    "MetadataRegistry",
    "SchemaResolver",
    "infer_column_type",
    "parse_temporal",
]
