"""
Execute and query helpers over a SQLAlchemy connection.

Each helper runs one command against an open ``Connection``. When neither an
explicit transaction nor an implicit one is active, the command runs in its
own short ``begin()`` block so it is committed and the connection is left
idle. Rows come back as plain dicts, or converted through ``row_type``.
"""

import time
from contextlib import contextmanager
from typing import (
    Any,
    Callable,
    Dict,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.engine import Connection, CursorResult, Transaction

from db_toolkit.config.data_access import DEFAULT_CONFIG, DataAccessConfig
from db_toolkit.errors import InvalidInputError
from db_toolkit.infrastructure.sql.core.parameters import build_bind_names
from db_toolkit.infrastructure.sql.core.record_shape import inspect_record
from db_toolkit.infrastructure.sql.dialects import AnsiDialect, get_dialect
from db_toolkit.infrastructure.sql.operations.statements import StatementBuilder
from db_toolkit.io.database.models import CommandKind
from db_toolkit.utils.logging import get_logger

logger = get_logger(__name__)

Params = Union[None, Mapping[str, Any], Sequence[Mapping[str, Any]], Any]
RowType = Optional[Callable[..., Any]]


def dialect_for(conn: Connection, config: Optional[DataAccessConfig] = None) -> AnsiDialect:
    """Return the SQL dialect matching a connection's database."""
    config = config or DEFAULT_CONFIG
    return get_dialect(conn.dialect.name, quote_identifiers=config.quote_identifiers)


def builder_for(
    conn: Connection, config: Optional[DataAccessConfig] = None
) -> StatementBuilder:
    """Return a StatementBuilder using the connection's dialect."""
    config = config or DEFAULT_CONFIG
    return StatementBuilder(dialect_for(conn, config), config)


def resolve_connection(
    conn: Optional[Connection], transaction: Optional[Transaction]
) -> Connection:
    """
    Return the connection a command should run on.

    Raises:
        InvalidInputError: No connection, an inactive transaction, or a
            transaction that belongs to another connection
    """
    if transaction is not None:
        if not transaction.is_active:
            raise InvalidInputError("transaction", "Transaction is no longer active")
        if conn is None:
            return transaction.connection
        if transaction.connection is not conn:
            raise InvalidInputError(
                "transaction", "Transaction belongs to a different connection"
            )
    if conn is None:
        raise InvalidInputError("connection")
    if conn.closed:
        raise InvalidInputError("connection", "Connection is closed")
    return conn


@contextmanager
def statement_scope(
    conn: Connection, transaction: Optional[Transaction] = None
) -> Iterator[Connection]:
    """Run the enclosed commands in the active transaction, or in a fresh one."""
    if transaction is not None or conn.in_transaction():
        yield conn
        return
    with conn.begin():
        yield conn


def apply_command_timeout(
    conn: Connection,
    timeout: Optional[float],
    config: Optional[DataAccessConfig] = None,
) -> None:
    """
    Limit statement run time for the current transaction where supported.

    None falls back to ``config.command_timeout``; values <= 0 disable the limit.
    """
    if timeout is None:
        timeout = (config or DEFAULT_CONFIG).command_timeout
    if timeout is None or timeout <= 0:
        return
    statement = dialect_for(conn, config).statement_timeout_sql(timeout)
    if statement is None:
        logger.debug(
            "database.command.timeout_ignored",
            dialect=conn.dialect.name,
            timeout=timeout,
        )
        return
    conn.execute(text(statement))


def _bind(params: Params) -> Union[None, Dict[str, Any], List[Dict[str, Any]]]:
    if params is None:
        return None
    if isinstance(params, Mapping):
        return dict(params)
    if isinstance(params, tuple) and hasattr(params, "_asdict"):
        return inspect_record(params)
    if isinstance(params, (list, tuple)):
        return [inspect_record(p) for p in params]
    return inspect_record(params)


def _procedure_call(
    dialect: AnsiDialect,
    procedure: str,
    params: Optional[Dict[str, Any]],
    returns_rows: bool,
) -> Tuple[str, Optional[Dict[str, Any]]]:
    if not procedure or not procedure.strip():
        raise InvalidInputError("procedure")
    names = list(params or {})
    bind_names = build_bind_names(names)
    placeholders = [f":{bind_names[n]}" for n in names]
    bound = {bind_names[n]: v for n, v in (params or {}).items()} if params else None
    return dialect.build_procedure_call(procedure, placeholders, returns_rows), bound


def _prepare(
    conn: Connection,
    transaction: Optional[Transaction],
    sql: str,
    params: Params,
    command_kind: CommandKind,
    returns_rows: bool,
    config: Optional[DataAccessConfig],
) -> Tuple[str, Any]:
    bound = _bind(params)
    if command_kind == CommandKind.STORED_PROCEDURE:
        if isinstance(bound, list):
            raise InvalidInputError(
                "params", "Stored procedures take a single parameter set"
            )
        dialect = dialect_for(resolve_connection(conn, transaction), config)
        return _procedure_call(dialect, sql, bound, returns_rows)
    if not sql or not sql.strip():
        raise InvalidInputError("sql")
    return sql, bound


def convert_row(row: Mapping[str, Any], row_type: RowType = None) -> Any:
    """Convert a result row mapping to ``row_type`` (dict when None)."""
    values = dict(row)
    if row_type is None:
        return values
    if isinstance(row_type, type) and issubclass(row_type, BaseModel):
        return row_type.model_validate(values)
    return row_type(**values)


def _run(
    conn: Connection,
    sql: str,
    params: Any,
    transaction: Optional[Transaction],
    timeout: Optional[float],
    config: Optional[DataAccessConfig],
    consume: Callable[[CursorResult], Any],
) -> Any:
    conn = resolve_connection(conn, transaction)
    start_time = time.perf_counter()
    with statement_scope(conn, transaction):
        apply_command_timeout(conn, timeout, config)
        result = conn.execute(text(sql), params)
        value = consume(result)
    logger.debug(
        "database.command.executed",
        dialect=conn.dialect.name,
        duration_ms=(time.perf_counter() - start_time) * 1000,
    )
    return value


def execute(
    conn: Connection,
    sql: str,
    params: Params = None,
    *,
    transaction: Optional[Transaction] = None,
    timeout: Optional[float] = None,
    command_kind: CommandKind = CommandKind.TEXT,
    config: Optional[DataAccessConfig] = None,
) -> int:
    """
    Execute a command and return the number of affected rows.

    A list of parameter sets executes the command once per set in one call.
    """
    sql, bound = _prepare(
        conn, transaction, sql, params, command_kind, False, config
    )
    return _run(
        conn, sql, bound, transaction, timeout, config, lambda r: r.rowcount
    )


def execute_scalar(
    conn: Connection,
    sql: str,
    params: Params = None,
    *,
    transaction: Optional[Transaction] = None,
    timeout: Optional[float] = None,
    command_kind: CommandKind = CommandKind.TEXT,
    row_type: RowType = None,
    config: Optional[DataAccessConfig] = None,
) -> Any:
    """Return the first column of the first row, or None when there are no rows."""
    sql, bound = _prepare(
        conn, transaction, sql, params, command_kind, True, config
    )
    value = _run(conn, sql, bound, transaction, timeout, config, lambda r: r.scalar())
    if value is not None and row_type is not None:
        return row_type(value)
    return value


def query_list(
    conn: Connection,
    sql: str,
    params: Params = None,
    *,
    transaction: Optional[Transaction] = None,
    timeout: Optional[float] = None,
    command_kind: CommandKind = CommandKind.TEXT,
    row_type: RowType = None,
    config: Optional[DataAccessConfig] = None,
) -> List[Any]:
    """Return every row of a query."""
    sql, bound = _prepare(
        conn, transaction, sql, params, command_kind, True, config
    )
    rows = _run(
        conn, sql, bound, transaction, timeout, config, lambda r: r.mappings().all()
    )
    return [convert_row(row, row_type) for row in rows]


def query_first_or_default(
    conn: Connection,
    sql: str,
    params: Params = None,
    *,
    transaction: Optional[Transaction] = None,
    timeout: Optional[float] = None,
    command_kind: CommandKind = CommandKind.TEXT,
    row_type: RowType = None,
    config: Optional[DataAccessConfig] = None,
) -> Any:
    """Return the first row, or None when the query yields nothing."""
    sql, bound = _prepare(
        conn, transaction, sql, params, command_kind, True, config
    )
    row = _run(
        conn, sql, bound, transaction, timeout, config, lambda r: r.mappings().first()
    )
    return None if row is None else convert_row(row, row_type)


def query_single(
    conn: Connection,
    sql: str,
    params: Params = None,
    *,
    transaction: Optional[Transaction] = None,
    timeout: Optional[float] = None,
    command_kind: CommandKind = CommandKind.TEXT,
    row_type: RowType = None,
    config: Optional[DataAccessConfig] = None,
) -> Any:
    """
    Return exactly one row.

    Raises:
        sqlalchemy.exc.NoResultFound: No rows
        sqlalchemy.exc.MultipleResultsFound: More than one row
    """
    sql, bound = _prepare(
        conn, transaction, sql, params, command_kind, True, config
    )
    row = _run(
        conn, sql, bound, transaction, timeout, config, lambda r: r.mappings().one()
    )
    return convert_row(row, row_type)


def query_single_or_default(
    conn: Connection,
    sql: str,
    params: Params = None,
    *,
    transaction: Optional[Transaction] = None,
    timeout: Optional[float] = None,
    command_kind: CommandKind = CommandKind.TEXT,
    row_type: RowType = None,
    config: Optional[DataAccessConfig] = None,
) -> Any:
    """Return the only row, or None; more than one row raises MultipleResultsFound."""
    sql, bound = _prepare(
        conn, transaction, sql, params, command_kind, True, config
    )
    row = _run(
        conn,
        sql,
        bound,
        transaction,
        timeout,
        config,
        lambda r: r.mappings().one_or_none(),
    )
    return None if row is None else convert_row(row, row_type)


def query_multiple(
    conn: Connection,
    statements: Sequence[str],
    params: Params = None,
    *,
    transaction: Optional[Transaction] = None,
    timeout: Optional[float] = None,
    row_types: Optional[Sequence[RowType]] = None,
    config: Optional[DataAccessConfig] = None,
) -> List[List[Any]]:
    """
    Run several queries in one call and return one row list per query.

    The queries run in order on the same connection, inside one transaction
    (the caller's, or a short one of their own), and share ``params``.

    Args:
        conn: Open connection
        statements: Queries to run; a single string is one query
        params: Parameters bound to every query
        transaction: Transaction to join, if any
        timeout: Statement timeout in seconds
        row_types: Row conversion target per query (dict where None)
        config: Data-access defaults

    Raises:
        InvalidInputError: No queries, an empty query, or a ``row_types``
            sequence whose length differs from ``statements``
    """
    if isinstance(statements, str):
        statements = [statements]
    if not statements or any(not sql or not sql.strip() for sql in statements):
        raise InvalidInputError("statements")
    if row_types is not None and len(row_types) != len(statements):
        raise InvalidInputError(
            "row_types", "row_types must have one entry per statement"
        )
    row_types = list(row_types) if row_types is not None else [None] * len(statements)
    bound = _bind(params)
    if isinstance(bound, list):
        raise InvalidInputError("params", "Queries take a single parameter set")

    conn = resolve_connection(conn, transaction)
    start_time = time.perf_counter()
    with statement_scope(conn, transaction):
        apply_command_timeout(conn, timeout, config)
        results = [
            conn.execute(text(sql), bound).mappings().all() for sql in statements
        ]
    logger.debug(
        "database.command.executed",
        dialect=conn.dialect.name,
        statements=len(statements),
        duration_ms=(time.perf_counter() - start_time) * 1000,
    )
    return [
        [convert_row(row, row_type) for row in rows]
        for rows, row_type in zip(results, row_types)
    ]


def execute_stored_procedure(
    conn: Connection,
    procedure: str,
    params: Optional[Mapping[str, Any]] = None,
    *,
    transaction: Optional[Transaction] = None,
    timeout: Optional[float] = None,
    config: Optional[DataAccessConfig] = None,
) -> int:
    """Invoke a stored procedure as ``CALL procedure(:p, ...)``."""
    return execute(
        conn,
        procedure,
        params,
        transaction=transaction,
        timeout=timeout,
        command_kind=CommandKind.STORED_PROCEDURE,
        config=config,
    )


def query_stored_procedure(
    conn: Connection,
    procedure: str,
    params: Optional[Mapping[str, Any]] = None,
    *,
    transaction: Optional[Transaction] = None,
    timeout: Optional[float] = None,
    row_type: RowType = None,
    config: Optional[DataAccessConfig] = None,
) -> List[Any]:
    """Query a set-returning procedure as ``SELECT * FROM procedure(:p, ...)``."""
    return query_list(
        conn,
        procedure,
        params,
        transaction=transaction,
        timeout=timeout,
        command_kind=CommandKind.STORED_PROCEDURE,
        row_type=row_type,
        config=config,
    )


def insert(
    conn: Connection,
    table: str,
    record: Any,
    *,
    key_column: Optional[str] = None,
    transaction: Optional[Transaction] = None,
    timeout: Optional[float] = None,
    config: Optional[DataAccessConfig] = None,
) -> int:
    """Insert one record (key field excluded) and return the affected row count."""
    conn = resolve_connection(conn, transaction)
    statement = builder_for(conn, config).build_insert(table, record, key_column)
    return _run(
        conn,
        statement.sql,
        statement.bind(record),
        transaction,
        timeout,
        config,
        lambda r: r.rowcount,
    )


def insert_with_id(
    conn: Connection,
    table: str,
    record: Any,
    *,
    key_column: Optional[str] = None,
    transaction: Optional[Transaction] = None,
    timeout: Optional[float] = None,
    row_type: RowType = None,
    config: Optional[DataAccessConfig] = None,
) -> Any:
    """Insert one record and return the key generated for it."""
    conn = resolve_connection(conn, transaction)
    statement = builder_for(conn, config).build_insert_returning_key(
        table, record, key_column
    )
    value = _run(
        conn,
        statement.sql,
        statement.bind(record),
        transaction,
        timeout,
        config,
        lambda r: r.scalar(),
    )
    if value is not None and row_type is not None:
        return row_type(value)
    return value


def update(
    conn: Connection,
    table: str,
    record: Any,
    *,
    key_column: Optional[str] = None,
    transaction: Optional[Transaction] = None,
    timeout: Optional[float] = None,
    config: Optional[DataAccessConfig] = None,
) -> int:
    """Update the row matching the record's key; returns affected rows."""
    conn = resolve_connection(conn, transaction)
    statement = builder_for(conn, config).build_update(table, record, key_column)
    return _run(
        conn,
        statement.sql,
        statement.bind(record),
        transaction,
        timeout,
        config,
        lambda r: r.rowcount,
    )


def delete(
    conn: Connection,
    table: str,
    key_value: Any,
    *,
    key_column: Optional[str] = None,
    transaction: Optional[Transaction] = None,
    timeout: Optional[float] = None,
    config: Optional[DataAccessConfig] = None,
) -> int:
    """Delete the row whose key equals ``key_value``; returns affected rows."""
    conn = resolve_connection(conn, transaction)
    statement = builder_for(conn, config).build_delete_by_key(table, key_column)
    (bind_name,) = statement.bind_names.values()
    return _run(
        conn,
        statement.sql,
        {bind_name: key_value},
        transaction,
        timeout,
        config,
        lambda r: r.rowcount,
    )


def delete_where(
    conn: Connection,
    table: str,
    where_clause: str,
    params: Optional[Mapping[str, Any]] = None,
    *,
    transaction: Optional[Transaction] = None,
    timeout: Optional[float] = None,
    config: Optional[DataAccessConfig] = None,
) -> int:
    """Delete rows matching a trusted WHERE fragment bound with ``params``."""
    conn = resolve_connection(conn, transaction)
    statement = builder_for(conn, config).build_delete_where(table, where_clause)
    return _run(
        conn,
        statement.sql,
        dict(params) if params else None,
        transaction,
        timeout,
        config,
        lambda r: r.rowcount,
    )
