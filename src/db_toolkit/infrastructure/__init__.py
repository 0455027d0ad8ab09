"""
Infrastructure Layer

Pure SQL generation utilities with no database I/O.

Components:
- sql.core: identifier quoting, bind-parameter naming, record shape inspection
- sql.dialects: dialect-specific statement syntax
- sql.operations: statement and pagination builders
"""

__all__: list[str] = []
