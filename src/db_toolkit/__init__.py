"""
DbToolkit - Relational database access toolkit.

Dynamic SQL generation for single-entity CRUD and batch operations,
transaction-scoped execution, paginated queries with total counts, and
at-rest protection of connection secrets.
"""

__version__ = "0.1.0"
