"""
Paginated query execution.

Runs the planned count and data queries on the same connection with the same
parameters. The caller's base query must not carry its own ORDER BY.
"""

import time
from typing import Any, Mapping, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection, Transaction

from db_toolkit.config.data_access import DEFAULT_CONFIG, DataAccessConfig
from db_toolkit.infrastructure.sql.operations.paging import plan_page
from db_toolkit.io.database.executor import (
    RowType,
    apply_command_timeout,
    convert_row,
    dialect_for,
    resolve_connection,
    statement_scope,
)
from db_toolkit.io.database.models import PagedResult
from db_toolkit.utils.logging import get_logger

logger = get_logger(__name__)


def query_paged(
    conn: Connection,
    base_query: str,
    page_number: int = 1,
    page_size: Optional[int] = None,
    params: Optional[Mapping[str, Any]] = None,
    order_by: Optional[str] = None,
    *,
    transaction: Optional[Transaction] = None,
    timeout: Optional[float] = None,
    row_type: RowType = None,
    config: Optional[DataAccessConfig] = None,
) -> PagedResult:
    """
    Fetch one page of a query along with the total row count.

    Args:
        conn: Open connection
        base_query: Query to paginate (no ORDER BY)
        page_number: 1-based page; values < 1 are treated as 1
        page_size: Rows per page; None or < 1 uses ``config.page_size``
        params: Parameters bound to both the count and the data query
        order_by: ORDER BY expression; defaults to ``config.order_by``
        transaction: Transaction to run in, if any
        timeout: Statement timeout in seconds
        row_type: Row conversion target (dict when None)
        config: Data-access defaults

    Returns:
        PagedResult with the page rows, total count, and the page number and
        size actually used
    """
    config = config or DEFAULT_CONFIG
    conn = resolve_connection(conn, transaction)
    plan = plan_page(
        base_query,
        page_number=page_number,
        page_size=page_size if page_size is not None else config.page_size,
        order_by=order_by or config.order_by,
        dialect=dialect_for(conn, config),
        default_page_size=config.page_size,
    )
    bound = dict(params) if params else None

    start_time = time.perf_counter()
    with statement_scope(conn, transaction):
        apply_command_timeout(conn, timeout, config)
        total_count = conn.execute(text(plan.count_query), bound).scalar() or 0
        rows = conn.execute(text(plan.data_query), bound).mappings().all()

    result = PagedResult(
        data=[convert_row(row, row_type) for row in rows],
        total_count=int(total_count),
        page_number=plan.page_number,
        page_size=plan.page_size,
    )
    logger.info(
        "database.paged_query.completed",
        page_number=result.page_number,
        page_size=result.page_size,
        rows=len(result.data),
        total_count=result.total_count,
        duration_ms=(time.perf_counter() - start_time) * 1000,
    )
    return result
