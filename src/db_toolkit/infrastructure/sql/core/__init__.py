"""Core SQL utilities package."""

from .identifier import qualify_table, quote_identifier
from .parameters import build_bind_names, build_indexed_params, is_bindable, remap_records
from .record_shape import (
    inspect_record,
    materialize_records,
    record_fields,
    records_from_frame,
)

__all__ = [
    "quote_identifier",
    "qualify_table",
    "build_bind_names",
    "build_indexed_params",
    "is_bindable",
    "remap_records",
    "inspect_record",
    "materialize_records",
    "record_fields",
    "records_from_frame",
]
