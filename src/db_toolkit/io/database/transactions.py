"""
Transaction scope management.

A scope owns exactly one transaction on one connection: it begins it at the
requested isolation level, runs the unit of work, and issues exactly one of
commit or rollback before returning. Exceptions raised by the unit of work
are re-raised unchanged after the rollback.

Usage:
    >>> with transaction_scope(engine) as (conn, tx):
    ...     conn.execute(text("UPDATE Users SET Age = Age + 1"))

    >>> total = run_in_transaction(engine, lambda conn, tx: insert(conn, "Users", user))
"""

import time
from contextlib import contextmanager
from typing import (
    Any,
    Callable,
    Iterable,
    Iterator,
    List,
    Optional,
    Tuple,
    TypeVar,
    Union,
)

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine, Transaction

from db_toolkit.config.data_access import (
    DEFAULT_CONFIG,
    DataAccessConfig,
    IsolationLevel,
)
from db_toolkit.errors import InvalidInputError, NestedTransactionError
from db_toolkit.io.database.executor import apply_command_timeout
from db_toolkit.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
ConnectionLike = Union[Engine, Connection]
UnitOfWork = Callable[[Connection, Transaction], T]


def _acquire(connection: ConnectionLike) -> Tuple[Connection, bool]:
    """Return an open connection and whether the caller of this helper owns it."""
    if connection is None:
        raise InvalidInputError("connection")
    if isinstance(connection, Engine):
        return connection.connect(), True
    if connection.closed:
        raise InvalidInputError("connection", "Connection is closed")
    return connection, False


def _isolation_value(
    isolation_level: Union[IsolationLevel, str, None], config: DataAccessConfig
) -> str:
    level = isolation_level or config.isolation_level
    if isinstance(level, IsolationLevel):
        return level.value
    return IsolationLevel(str(level).upper().replace("_", " ")).value


def _supported_levels(conn: Connection) -> Optional[List[str]]:
    try:
        return list(
            conn.dialect.get_isolation_level_values(conn.connection.dbapi_connection)
        )
    except NotImplementedError:
        return None


def _begin(
    conn: Connection,
    isolation_level: Union[IsolationLevel, str, None],
    config: DataAccessConfig,
) -> Transaction:
    if conn.in_transaction():
        raise NestedTransactionError(
            "Connection already has an active transaction; nested scopes are not supported"
        )
    level = _isolation_value(isolation_level, config)
    supported = _supported_levels(conn)
    if isolation_level is None and supported is not None and level not in supported:
        # Configured default the backend cannot honour; keep its own level
        logger.debug(
            "database.transaction.isolation_level_skipped",
            isolation_level=level,
            dialect=conn.dialect.name,
            supported=supported,
        )
    else:
        conn.execution_options(isolation_level=level)
    transaction = conn.begin()
    logger.debug("database.transaction.started", isolation_level=level)
    return transaction


def _rollback(transaction: Transaction, error: BaseException) -> None:
    try:
        transaction.rollback()
    except Exception as rollback_error:
        # The original failure is re-raised by the caller
        logger.error(
            "database.transaction.rollback_failed",
            error=str(rollback_error),
            original_error=type(error).__name__,
        )
        return
    logger.warning(
        "database.transaction.rolled_back",
        error_type=type(error).__name__,
        error=str(error),
    )


def begin_safe(
    connection: ConnectionLike,
    isolation_level: Union[IsolationLevel, str, None] = None,
    config: Optional[DataAccessConfig] = None,
) -> Transaction:
    """
    Begin a transaction, opening a connection first when given an Engine.

    The caller owns the returned transaction and its connection
    (``transaction.connection``) and must close both.

    Raises:
        InvalidInputError: No connection, or a closed one
        NestedTransactionError: Connection already in a transaction
    """
    conn, _ = _acquire(connection)
    return _begin(conn, isolation_level, config or DEFAULT_CONFIG)


def commit_safe(transaction: Transaction, dispose_after_commit: bool = True) -> None:
    """
    Commit a transaction, rolling it back if the commit itself fails.

    Args:
        transaction: Active transaction
        dispose_after_commit: Close the transaction handle afterwards

    Raises:
        InvalidInputError: No transaction given
        Exception: The commit failure, re-raised after rollback
    """
    if transaction is None:
        raise InvalidInputError("transaction")
    try:
        transaction.commit()
        logger.info("database.transaction.committed")
    except Exception as exc:
        logger.error("database.transaction.commit_failed", error=str(exc))
        _rollback(transaction, exc)
        raise
    finally:
        if dispose_after_commit:
            transaction.close()


@contextmanager
def transaction_scope(
    connection: ConnectionLike,
    isolation_level: Union[IsolationLevel, str, None] = None,
    config: Optional[DataAccessConfig] = None,
) -> Iterator[Tuple[Connection, Transaction]]:
    """
    Context manager yielding ``(connection, transaction)``.

    Commits when the block exits normally, rolls back and re-raises otherwise.
    A connection opened from an Engine is closed on exit; a caller-supplied
    connection is left open.
    """
    config = config or DEFAULT_CONFIG
    conn, owned = _acquire(connection)
    try:
        transaction = _begin(conn, isolation_level, config)
        start_time = time.perf_counter()
        try:
            yield conn, transaction
        except BaseException as exc:
            _rollback(transaction, exc)
            raise
        commit_safe(transaction)
        logger.debug(
            "database.transaction.completed",
            duration_ms=(time.perf_counter() - start_time) * 1000,
        )
    finally:
        if owned:
            conn.close()


def run_in_transaction(
    connection: ConnectionLike,
    unit_of_work: UnitOfWork,
    isolation_level: Union[IsolationLevel, str, None] = None,
    config: Optional[DataAccessConfig] = None,
) -> Any:
    """
    Run ``unit_of_work(conn, transaction)`` inside a transaction scope.

    Args:
        connection: Engine (a connection is opened and closed here) or an open
            Connection without an active transaction
        unit_of_work: Callable receiving the connection and transaction
        isolation_level: Isolation level; defaults to ``config.isolation_level``
        config: Data-access defaults

    Returns:
        Whatever the unit of work returns (None for side-effect-only units)

    Raises:
        NestedTransactionError: Connection already in a transaction
        Exception: Anything the unit of work or the commit raises, after rollback
    """
    if unit_of_work is None:
        raise InvalidInputError("unit_of_work")
    with transaction_scope(connection, isolation_level, config) as (conn, transaction):
        return unit_of_work(conn, transaction)


def execute_multiple_in_transaction(
    connection: ConnectionLike,
    commands: Iterable[Tuple[str, Any]],
    isolation_level: Union[IsolationLevel, str, None] = None,
    timeout: Optional[float] = None,
    config: Optional[DataAccessConfig] = None,
) -> int:
    """
    Execute ``(sql, params)`` pairs in order within one transaction.

    Returns:
        Sum of affected rows across all commands
    """
    if commands is None:
        raise InvalidInputError("commands")
    config = config or DEFAULT_CONFIG

    def _work(conn: Connection, transaction: Transaction) -> int:
        apply_command_timeout(conn, timeout, config)
        total = 0
        for sql, params in commands:
            result = conn.execute(text(sql), params)
            total += max(result.rowcount, 0)
        return total

    affected = run_in_transaction(connection, _work, isolation_level, config)
    logger.info("database.transaction.batch_executed", affected=affected)
    return affected
