"""
SQL Server dialect.

Uses bracket quoting, ``OUTPUT INSERTED`` to return generated keys and
``EXEC`` for stored procedures.
"""

from typing import List

from .base import AnsiDialect


class MSSQLDialect(AnsiDialect):
    """Microsoft SQL Server dialect implementation."""

    name = "mssql"
    quote_style = "mssql"

    def build_insert_returning(
        self,
        table: str,
        columns: List[str],
        placeholders: List[str],
        key_column: str,
    ) -> str:
        quoted_cols = ", ".join(self.quote(c) for c in columns)
        values = ", ".join(placeholders)
        return (
            f"INSERT INTO {self.qualify(table)} ({quoted_cols}) "
            f"OUTPUT INSERTED.{self.quote(key_column)} VALUES ({values})"
        )

    def build_procedure_call(
        self, procedure: str, placeholders: List[str], returns_rows: bool = False
    ) -> str:
        # T-SQL has no CALL; EXEC returns the procedure's result sets as-is
        if not placeholders:
            return f"EXEC {procedure}"
        return f"EXEC {procedure} {', '.join(placeholders)}"
