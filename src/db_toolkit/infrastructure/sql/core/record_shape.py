"""
Record shape inspection.

A record shape is the ordered set of ``(field, value)`` pairs carried by one
entity for one call. It is derived at call time from whatever the caller
passes: mappings, dataclasses, pydantic models, named tuples or plain objects.
Field order follows the record's own declaration or insertion order so that
generated column lists and placeholders line up.
"""

import dataclasses
import math
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import pandas as pd
from pydantic import BaseModel

from db_toolkit.errors import StatementGenerationError

_SCALAR_TYPES = (str, bytes, bytearray, int, float, bool, type(None))


def inspect_record(record: Any) -> Dict[str, Any]:
    """
    Enumerate the fields of a record in a stable order.

    Args:
        record: Mapping, dataclass instance, pydantic model, named tuple or
            object with public instance attributes

    Returns:
        Ordered dict of field name to value

    Raises:
        StatementGenerationError: If the value has no enumerable fields

    Examples:
        >>> inspect_record({"Id": 1, "Name": "Ann"})
        {'Id': 1, 'Name': 'Ann'}
    """
    if isinstance(record, Mapping):
        return {str(k): v for k, v in record.items()}
    if isinstance(record, BaseModel):
        return record.model_dump()
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        return {f.name: getattr(record, f.name) for f in dataclasses.fields(record)}
    if isinstance(record, tuple) and hasattr(record, "_asdict"):
        return dict(record._asdict())
    if isinstance(record, _SCALAR_TYPES) or isinstance(record, (list, tuple, set)):
        raise StatementGenerationError(
            f"Cannot derive a record shape from {type(record).__name__}"
        )

    slots = getattr(type(record), "__slots__", None)
    if slots and not hasattr(record, "__dict__"):
        names = [slots] if isinstance(slots, str) else list(slots)
        return {n: getattr(record, n) for n in names if not n.startswith("_")}

    try:
        attributes = vars(record)
    except TypeError as e:
        raise StatementGenerationError(
            f"Cannot derive a record shape from {type(record).__name__}"
        ) from e
    return {k: v for k, v in attributes.items() if not k.startswith("_")}


def record_fields(
    record: Any, key_field: Optional[str] = None
) -> List[Tuple[str, Any]]:
    """
    Return the ``(name, value)`` pairs of a record, excluding the key field.

    Examples:
        >>> record_fields({"Id": 7, "Name": "Ann", "Age": 30}, key_field="Id")
        [('Name', 'Ann'), ('Age', 30)]
    """
    return [(k, v) for k, v in inspect_record(record).items() if k != key_field]


def _nan_to_none(value: Any) -> Any:
    if isinstance(value, float) and math.isnan(value):
        return None
    if value is pd.NaT:
        return None
    return value


def records_from_frame(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Expand a DataFrame into one mapping per row, with NaN/NaT bound as NULL."""
    return [
        {str(k): _nan_to_none(v) for k, v in row.items()}
        for row in df.to_dict(orient="records")
    ]


def materialize_records(
    records: Union[pd.DataFrame, Iterable[Any]],
) -> List[Dict[str, Any]]:
    """
    Turn a record collection into a list of record shapes.

    Raises:
        StatementGenerationError: If records do not all carry the same fields
    """
    if isinstance(records, pd.DataFrame):
        return records_from_frame(records)

    shapes = [inspect_record(r) for r in records]
    if shapes:
        expected = list(shapes[0])
        for i, shape in enumerate(shapes[1:], start=1):
            if set(shape) != set(expected):
                raise StatementGenerationError(
                    f"Record {i} fields {sorted(shape)} differ from record 0 "
                    f"fields {sorted(expected)}"
                )
    return shapes

