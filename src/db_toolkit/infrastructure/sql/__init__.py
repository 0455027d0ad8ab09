"""
SQL module for centralized SQL generation.

This module provides reusable utilities for building SQL statements with
optional identifier quoting, record-shape driven column lists, and
dialect-specific pagination syntax.
"""

from .core.identifier import qualify_table, quote_identifier
from .core.parameters import build_bind_names, build_indexed_params, remap_records
from .core.record_shape import inspect_record, materialize_records
from .dialects import AnsiDialect, PostgreSQLDialect, SQLiteDialect, get_dialect
from .operations.paging import PagePlan, plan_page
from .operations.statements import SqlStatement, StatementBuilder

__all__ = [
    "quote_identifier",
    "qualify_table",
    "build_bind_names",
    "build_indexed_params",
    "remap_records",
    "inspect_record",
    "materialize_records",
    "AnsiDialect",
    "PostgreSQLDialect",
    "SQLiteDialect",
    "get_dialect",
    "PagePlan",
    "plan_page",
    "SqlStatement",
    "StatementBuilder",
]
