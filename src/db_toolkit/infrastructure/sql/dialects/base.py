"""
ANSI SQL dialect.

Provides the statement syntax shared by every supported database, including
the ``OFFSET ... ROWS FETCH NEXT ... ROWS ONLY`` pagination window. Dialect
subclasses override only what differs.
"""

from typing import List, Optional

from ..core.identifier import qualify_table, quote_identifier


class AnsiDialect:
    """Standard SQL dialect implementation."""

    name = "ansi"
    quote_style = "postgresql"

    def __init__(self, quote_identifiers: bool = False):
        self.quote_identifiers = quote_identifiers

    def quote(self, identifier: str) -> str:
        """Quote an identifier when quoting is enabled, else emit it verbatim."""
        if not self.quote_identifiers:
            return identifier
        return quote_identifier(identifier, dialect=self.quote_style)

    def qualify(self, table: str) -> str:
        """Return the table reference as it appears in generated SQL."""
        if not self.quote_identifiers:
            return table
        return qualify_table(table, dialect=self.quote_style)

    def build_insert(
        self, table: str, columns: List[str], placeholders: List[str]
    ) -> str:
        """
        Build a single-row INSERT statement.

        Args:
            table: Table name
            columns: Column names
            placeholders: Parameter placeholders, one per column, same order

        Returns:
            INSERT SQL statement
        """
        quoted_cols = ", ".join(self.quote(c) for c in columns)
        values = ", ".join(placeholders)
        return f"INSERT INTO {self.qualify(table)} ({quoted_cols}) VALUES ({values})"

    def build_insert_returning(
        self,
        table: str,
        columns: List[str],
        placeholders: List[str],
        key_column: str,
    ) -> str:
        """Build an INSERT that returns the generated key of the new row."""
        base_insert = self.build_insert(table, columns, placeholders)
        return f"{base_insert} RETURNING {self.quote(key_column)}"

    def build_update(
        self,
        table: str,
        columns: List[str],
        placeholders: List[str],
        key_column: str,
        key_placeholder: str,
    ) -> str:
        """Build an UPDATE of ``columns`` for the row matching the key."""
        set_clause = ", ".join(
            f"{self.quote(col)} = {ph}" for col, ph in zip(columns, placeholders)
        )
        return (
            f"UPDATE {self.qualify(table)} SET {set_clause} "
            f"WHERE {self.quote(key_column)} = {key_placeholder}"
        )

    def build_delete(self, table: str, where_clause: str) -> str:
        """Build a DELETE using an already-rendered predicate."""
        return f"DELETE FROM {self.qualify(table)} WHERE {where_clause}"

    def build_count(self, base_query: str) -> str:
        """Wrap a query as a subquery and count its rows."""
        return f"SELECT COUNT(*) FROM ({base_query}) AS CountTable"

    def window_clause(self, offset: int, size: int) -> str:
        """Render the pagination window for ``size`` rows starting at ``offset``."""
        return f"OFFSET {offset} ROWS FETCH NEXT {size} ROWS ONLY"

    def build_window(
        self, base_query: str, order_by: str, offset: int, size: int
    ) -> str:
        """Wrap a query as a subquery, order it and apply the window."""
        return (
            f"SELECT * FROM ({base_query}) AS PagedTable "
            f"ORDER BY {order_by} {self.window_clause(offset, size)}"
        )

    def build_procedure_call(
        self, procedure: str, placeholders: List[str], returns_rows: bool = False
    ) -> str:
        """
        Build a stored procedure invocation with positional placeholders.

        Set-returning procedures are selected from like a table function.
        """
        args = ", ".join(placeholders)
        if returns_rows:
            return f"SELECT * FROM {procedure}({args})"
        return f"CALL {procedure}({args})"

    def statement_timeout_sql(self, timeout: Optional[float]) -> Optional[str]:
        """SQL that limits statement run time, or None when unsupported."""
        return None
