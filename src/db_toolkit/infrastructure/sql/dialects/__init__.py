"""SQL dialects keyed by SQLAlchemy dialect name."""

from typing import Dict, Type

from .base import AnsiDialect
from .mssql import MSSQLDialect
from .mysql import MySQLDialect
from .postgresql import PostgreSQLDialect
from .sqlite import SQLiteDialect

_DIALECTS: Dict[str, Type[AnsiDialect]] = {
    "postgresql": PostgreSQLDialect,
    "sqlite": SQLiteDialect,
    "mssql": MSSQLDialect,
    "mysql": MySQLDialect,
    "mariadb": MySQLDialect,
}


def get_dialect(name: str, quote_identifiers: bool = False) -> AnsiDialect:
    """
    Return the dialect for a SQLAlchemy dialect name.

    Unknown names (oracle, ...) fall back to ANSI syntax.

    Examples:
        >>> get_dialect("postgresql").name
        'postgresql'
        >>> get_dialect("oracle").name
        'ansi'
    """
    dialect_cls = _DIALECTS.get((name or "").lower(), AnsiDialect)
    return dialect_cls(quote_identifiers=quote_identifiers)


__all__ = [
    "AnsiDialect",
    "MSSQLDialect",
    "MySQLDialect",
    "PostgreSQLDialect",
    "SQLiteDialect",
    "get_dialect",
]
