"""
SQL parameter binding utilities.

SQLAlchemy ``text()`` binds ``:name`` placeholders, which only accept plain
identifiers. Field names that are not (spaces, CJK characters, punctuation)
are bound through indexed names (``col_0``, ``col_1``...) and the records are
remapped to match.
"""

import re
from typing import Any, Dict, List, Mapping, Sequence, Tuple

_BIND_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def is_bindable(name: str) -> bool:
    """Return True if ``name`` can be used directly as a ``:name`` placeholder."""
    return bool(_BIND_NAME.match(name))


def build_indexed_params(columns: List[str]) -> Tuple[Dict[str, str], List[str]]:
    """
    Build indexed parameter mapping for SQL queries.

    Args:
        columns: List of column names

    Returns:
        Tuple of (column_to_param mapping, list of placeholder strings)

    Examples:
        >>> col_map, placeholders = build_indexed_params(["年金计划号", "Full Name"])
        >>> col_map
        {'年金计划号': 'col_0', 'Full Name': 'col_1'}
        >>> placeholders
        [':col_0', ':col_1']
    """
    col_param_map = {col: f"col_{i}" for i, col in enumerate(columns)}
    placeholders = [f":{col_param_map[col]}" for col in columns]
    return col_param_map, placeholders


def build_bind_names(columns: Sequence[str]) -> Dict[str, str]:
    """
    Map each column to the bind name used for it.

    Columns keep their own names when every one of them is bindable; otherwise
    the whole set switches to indexed names so placeholders never collide.

    Examples:
        >>> build_bind_names(["Name", "Email"])
        {'Name': 'Name', 'Email': 'Email'}
        >>> build_bind_names(["Name", "E-mail"])
        {'Name': 'col_0', 'E-mail': 'col_1'}
    """
    if all(is_bindable(col) for col in columns):
        return {col: col for col in columns}
    col_map, _ = build_indexed_params(list(columns))
    return col_map


def remap_records(
    records: Sequence[Mapping[str, Any]], param_map: Dict[str, str]
) -> List[Dict[str, Any]]:
    """
    Remap record keys to bind parameter names, dropping unmapped keys.

    Examples:
        >>> remap_records([{"E-mail": "a@b.c", "Id": 1}], {"E-mail": "col_0"})
        [{'col_0': 'a@b.c'}]
    """
    remapped = []
    for record in records:
        remapped.append({param_map[k]: v for k, v in record.items() if k in param_map})
    return remapped
