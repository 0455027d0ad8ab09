"""
Bulk and chunked data operations.

The non-chunked operations send one statement in one round trip: INSERT and
UPDATE through ``executemany`` with one parameter set per record, DELETE
through an expanding ``IN`` parameter. The ``*_in_batches`` variants split the
input into ordered groups of at most ``batch_size`` records and run the
non-chunked operation once per group, sequentially.

Each group commits on its own unless the caller runs the whole call inside a
transaction scope; a failing group stops the run and its error propagates.
"""

import time
import uuid
from typing import Any, Callable, Iterable, Iterator, List, Optional, Sequence, Union

import pandas as pd
from sqlalchemy import text
from sqlalchemy.engine import Connection, Transaction

from db_toolkit.config.data_access import DEFAULT_CONFIG, DataAccessConfig
from db_toolkit.errors import InvalidInputError
from db_toolkit.infrastructure.sql.core.record_shape import (
    inspect_record,
    materialize_records,
)
from db_toolkit.io.database.executor import (
    apply_command_timeout,
    builder_for,
    resolve_connection,
    statement_scope,
)
from db_toolkit.utils.logging import get_logger

logger = get_logger(__name__)

Records = Union[pd.DataFrame, Iterable[Any]]


def chunk_records(
    records: Sequence[Any], batch_size: Optional[int] = None
) -> Iterator[List[Any]]:
    """
    Yield consecutive groups of at most ``batch_size`` records, in order.

    Values below 1 (or None) fall back to the default batch size.

    Examples:
        >>> [len(g) for g in chunk_records(list(range(2500)), 1000)]
        [1000, 1000, 500]
    """
    if not batch_size or batch_size < 1:
        batch_size = DEFAULT_CONFIG.batch_size
    items = list(records)
    for start in range(0, len(items), batch_size):
        yield items[start : start + batch_size]


def _affected(result: Any, fallback: Optional[int] = None) -> int:
    rowcount = result.rowcount
    if rowcount is None or rowcount < 0:
        return fallback if fallback is not None else 0
    return rowcount


def bulk_insert(
    conn: Connection,
    table: str,
    records: Records,
    *,
    key_column: Optional[str] = None,
    transaction: Optional[Transaction] = None,
    timeout: Optional[float] = None,
    config: Optional[DataAccessConfig] = None,
) -> int:
    """
    Insert every record with one INSERT executed for all parameter sets.

    The column list comes from the first record, minus the key field; every
    record must carry the same fields.

    Returns:
        Number of inserted rows (0 for empty input, without touching the database)
    """
    shapes = materialize_records(records)
    if not shapes:
        return 0
    conn = resolve_connection(conn, transaction)
    statement = builder_for(conn, config).build_insert(table, shapes[0], key_column)
    params = statement.bind_many(shapes)
    with statement_scope(conn, transaction):
        apply_command_timeout(conn, timeout, config)
        result = conn.execute(statement.clause(), params)
        return _affected(result, fallback=len(params))


def bulk_update(
    conn: Connection,
    table: str,
    records: Records,
    *,
    key_column: Optional[str] = None,
    transaction: Optional[Transaction] = None,
    timeout: Optional[float] = None,
    config: Optional[DataAccessConfig] = None,
) -> int:
    """Update every record, matched on its key, with one UPDATE statement."""
    shapes = materialize_records(records)
    if not shapes:
        return 0
    conn = resolve_connection(conn, transaction)
    statement = builder_for(conn, config).build_update(table, shapes[0], key_column)
    params = statement.bind_many(shapes)
    with statement_scope(conn, transaction):
        apply_command_timeout(conn, timeout, config)
        result = conn.execute(statement.clause(), params)
        return _affected(result)


def bulk_delete(
    conn: Connection,
    table: str,
    ids: Iterable[Any],
    *,
    key_column: Optional[str] = None,
    transaction: Optional[Transaction] = None,
    timeout: Optional[float] = None,
    config: Optional[DataAccessConfig] = None,
) -> int:
    """Delete every row whose key is in ``ids`` with one ``IN`` statement."""
    if ids is None:
        raise InvalidInputError("ids")
    keys = list(ids)
    if not keys:
        return 0
    conn = resolve_connection(conn, transaction)
    statement = builder_for(conn, config).build_delete_in(table, key_column)
    (bind_name,) = statement.expanding
    with statement_scope(conn, transaction):
        apply_command_timeout(conn, timeout, config)
        result = conn.execute(statement.clause(), {bind_name: keys})
        return _affected(result)


def bulk_execute(
    conn: Connection,
    sql: str,
    parameter_sets: Iterable[Any],
    *,
    transaction: Optional[Transaction] = None,
    timeout: Optional[float] = None,
    config: Optional[DataAccessConfig] = None,
) -> int:
    """Execute one statement once per parameter set, in a single call."""
    if not sql or not sql.strip():
        raise InvalidInputError("sql")
    params = [inspect_record(p) for p in parameter_sets]
    if not params:
        return 0
    conn = resolve_connection(conn, transaction)
    with statement_scope(conn, transaction):
        apply_command_timeout(conn, timeout, config)
        result = conn.execute(text(sql), params)
        return _affected(result)


def _in_batches(
    operation: Callable[..., int],
    operation_name: str,
    conn: Connection,
    table: str,
    records: Records,
    batch_size: Optional[int],
    config: Optional[DataAccessConfig],
    **kwargs: Any,
) -> int:
    config = config or DEFAULT_CONFIG
    if batch_size is None or batch_size < 1:
        batch_size = config.batch_size
    shapes = materialize_records(records)
    if not shapes:
        return 0

    execution_id = uuid.uuid4().hex
    batches = -(-len(shapes) // batch_size)
    start_time = time.perf_counter()
    logger.info(
        "database.bulk.started",
        operation=operation_name,
        table=table,
        rows=len(shapes),
        batch_size=batch_size,
        batches=batches,
        execution_id=execution_id,
    )

    total = 0
    for index, group in enumerate(chunk_records(shapes, batch_size), start=1):
        try:
            affected = operation(conn, table, group, config=config, **kwargs)
        except Exception as exc:
            logger.error(
                "database.bulk.batch_failed",
                operation=operation_name,
                table=table,
                batch=index,
                batches=batches,
                execution_id=execution_id,
                error=str(exc),
            )
            raise
        total += affected
        logger.info(
            "database.bulk.batch_completed",
            operation=operation_name,
            table=table,
            batch=index,
            batches=batches,
            rows=len(group),
            affected=affected,
            execution_id=execution_id,
        )

    logger.info(
        "database.bulk.completed",
        operation=operation_name,
        table=table,
        affected=total,
        duration_ms=(time.perf_counter() - start_time) * 1000,
        execution_id=execution_id,
    )
    return total


def bulk_insert_in_batches(
    conn: Connection,
    table: str,
    records: Records,
    batch_size: Optional[int] = None,
    *,
    key_column: Optional[str] = None,
    transaction: Optional[Transaction] = None,
    timeout: Optional[float] = None,
    config: Optional[DataAccessConfig] = None,
) -> int:
    """
    Insert records in ordered groups of at most ``batch_size``.

    Args:
        conn: Open connection
        table: Target table
        records: Records or DataFrame
        batch_size: Group size; None or < 1 uses ``config.batch_size``
        key_column: Key field excluded from the insert
        transaction: Transaction the groups run in, if any
        timeout: Statement timeout in seconds
        config: Data-access defaults

    Returns:
        Total inserted rows across all groups
    """
    return _in_batches(
        bulk_insert,
        "insert",
        conn,
        table,
        records,
        batch_size,
        config,
        key_column=key_column,
        transaction=transaction,
        timeout=timeout,
    )


def bulk_update_in_batches(
    conn: Connection,
    table: str,
    records: Records,
    batch_size: Optional[int] = None,
    *,
    key_column: Optional[str] = None,
    transaction: Optional[Transaction] = None,
    timeout: Optional[float] = None,
    config: Optional[DataAccessConfig] = None,
) -> int:
    """Update records in ordered groups of at most ``batch_size``."""
    return _in_batches(
        bulk_update,
        "update",
        conn,
        table,
        records,
        batch_size,
        config,
        key_column=key_column,
        transaction=transaction,
        timeout=timeout,
    )
