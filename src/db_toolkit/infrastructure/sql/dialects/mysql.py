"""MySQL / MariaDB dialect: backtick quoting, LIMIT/OFFSET pagination."""

from .base import AnsiDialect


class MySQLDialect(AnsiDialect):
    """MySQL SQL dialect implementation."""

    name = "mysql"
    quote_style = "mysql"

    def window_clause(self, offset: int, size: int) -> str:
        return f"LIMIT {size} OFFSET {offset}"
