"""
PostgreSQL-specific SQL dialect implementation.

PostgreSQL accepts the ANSI pagination window and ``RETURNING``; the only
addition is a transaction-local statement timeout.
"""

from typing import Optional

from .base import AnsiDialect


class PostgreSQLDialect(AnsiDialect):
    """PostgreSQL SQL dialect implementation."""

    name = "postgresql"
    quote_style = "postgresql"

    def statement_timeout_sql(self, timeout: Optional[float]) -> Optional[str]:
        """
        Build ``SET LOCAL statement_timeout`` for the current transaction.

        Args:
            timeout: Timeout in seconds; None or <= 0 disables the limit

        Returns:
            SET LOCAL statement, or None when no timeout applies
        """
        if not timeout or timeout <= 0:
            return None
        return f"SET LOCAL statement_timeout = {int(timeout * 1000)}"
