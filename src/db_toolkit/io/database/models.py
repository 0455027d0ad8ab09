"""Enums and result types passed to or returned by the database helpers."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Tuple


class CommandKind(str, Enum):
    """How the command text passed to an execute/query helper is interpreted."""

    TEXT = "text"
    STORED_PROCEDURE = "stored_procedure"


class DatabaseType(str, Enum):
    """Database families a connection descriptor can target."""

    SQL_SERVER = "sqlserver"
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"
    ORACLE = "oracle"

    @classmethod
    def parse(cls, value: str) -> "DatabaseType":
        """Parse a configured type name, case-insensitively.

        Accepts the enum value or name (``"SqlServer"``, ``"sql_server"``,
        ``"PostgreSQL"``...).
        """
        normalized = value.strip().lower().replace("_", "").replace(" ", "")
        for member in cls:
            if normalized in (member.value, member.name.lower().replace("_", "")):
                return member
        raise ValueError(f"Unknown database type: {value!r}")


@dataclass
class PagedResult:
    """One page of rows plus the total row count of the unpaged query."""

    data: List[Any] = field(default_factory=list)
    total_count: int = 0
    page_number: int = 1
    page_size: int = 10

    @property
    def total_pages(self) -> int:
        if self.total_count <= 0:
            return 0
        return -(-self.total_count // self.page_size)

    @property
    def has_next_page(self) -> bool:
        return self.page_number < self.total_pages

    def as_tuple(self) -> Tuple[List[Any], int]:
        return self.data, self.total_count
