"""
Explicit defaults for data-access operations.

Operations never read process-wide mutable state for their defaults; callers
pass a :class:`DataAccessConfig` (or accept :data:`DEFAULT_CONFIG`). Build one
from the environment with ``get_settings().data_access()``.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional


class IsolationLevel(str, Enum):
    """Transaction isolation levels, valued as SQLAlchemy expects them."""

    READ_UNCOMMITTED = "READ UNCOMMITTED"
    READ_COMMITTED = "READ COMMITTED"
    REPEATABLE_READ = "REPEATABLE READ"
    SERIALIZABLE = "SERIALIZABLE"


DEFAULT_KEY_COLUMN = "Id"
DEFAULT_BATCH_SIZE = 1000
DEFAULT_PAGE_SIZE = 10
DEFAULT_COMMAND_TIMEOUT = 30


@dataclass(frozen=True)
class DataAccessConfig:
    """
    Immutable bundle of data-access defaults.

    Attributes:
        key_column: Field treated as the entity's primary key
        batch_size: Group size used by the chunked bulk operations
        page_size: Page size used when a caller passes a value below 1
        order_by: ORDER BY clause used by paged queries when none is given
        isolation_level: Isolation level for transaction scopes
        command_timeout: Statement timeout in seconds (None disables it)
        quote_identifiers: Quote table and column names in generated SQL
    """

    key_column: str = DEFAULT_KEY_COLUMN
    batch_size: int = DEFAULT_BATCH_SIZE
    page_size: int = DEFAULT_PAGE_SIZE
    order_by: str = DEFAULT_KEY_COLUMN
    isolation_level: IsolationLevel = IsolationLevel.READ_COMMITTED
    command_timeout: Optional[int] = DEFAULT_COMMAND_TIMEOUT
    quote_identifiers: bool = False

    def __post_init__(self) -> None:
        if not self.key_column:
            raise ValueError("key_column must be a non-empty string")
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")

    def with_overrides(self, **changes: Any) -> "DataAccessConfig":
        """Return a copy with the given fields replaced, ignoring ``None`` values."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


DEFAULT_CONFIG = DataAccessConfig()
