"""SQLite dialect: LIMIT/OFFSET pagination instead of OFFSET/FETCH."""

from .base import AnsiDialect


class SQLiteDialect(AnsiDialect):
    """SQLite SQL dialect implementation."""

    name = "sqlite"
    quote_style = "postgresql"

    def window_clause(self, offset: int, size: int) -> str:
        return f"LIMIT {size} OFFSET {offset}"
