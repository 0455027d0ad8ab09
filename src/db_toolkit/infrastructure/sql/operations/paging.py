"""
Pagination planning.

Turns a base query into a count query and a windowed data query. The base
query is wrapped as a subquery, so it must not carry its own ORDER BY.
"""

from dataclasses import dataclass
from typing import Optional

from db_toolkit.config.data_access import DEFAULT_PAGE_SIZE
from db_toolkit.errors import InvalidInputError

from ..dialects import AnsiDialect

DEFAULT_ORDER_BY = "Id"


@dataclass(frozen=True)
class PagePlan:
    """Statements and normalized window for one page."""

    count_query: str
    data_query: str
    offset: int
    page_number: int
    page_size: int


def plan_page(
    base_query: str,
    page_number: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    order_by: Optional[str] = None,
    dialect: Optional[AnsiDialect] = None,
    default_page_size: int = DEFAULT_PAGE_SIZE,
) -> PagePlan:
    """
    Plan the count and data queries for one page.

    Args:
        base_query: Query to paginate (no ORDER BY)
        page_number: 1-based page number; values < 1 are treated as 1
        page_size: Rows per page; values < 1 fall back to ``default_page_size``
        order_by: ORDER BY expression; empty means ``Id``
        dialect: Dialect rendering the window (ANSI OFFSET/FETCH by default)
        default_page_size: Page size used when ``page_size`` is < 1

    Returns:
        PagePlan

    Examples:
        >>> plan = plan_page("SELECT * FROM Users", page_number=2, page_size=10)
        >>> plan.offset
        10
        >>> plan.data_query
        'SELECT * FROM (SELECT * FROM Users) AS PagedTable ORDER BY Id OFFSET 10 ROWS FETCH NEXT 10 ROWS ONLY'
    """
    if not base_query or not base_query.strip():
        raise InvalidInputError("base_query")

    dialect = dialect or AnsiDialect()
    page_number = page_number if page_number and page_number >= 1 else 1
    if not page_size or page_size < 1:
        page_size = default_page_size if default_page_size >= 1 else DEFAULT_PAGE_SIZE
    order_by = order_by.strip() if order_by and order_by.strip() else DEFAULT_ORDER_BY
    offset = (page_number - 1) * page_size

    return PagePlan(
        count_query=dialect.build_count(base_query),
        data_query=dialect.build_window(base_query, order_by, offset, page_size),
        offset=offset,
        page_number=page_number,
        page_size=page_size,
    )
