"""Integration tests for transaction scopes against SQLite."""

import pytest
from sqlalchemy import text
from sqlalchemy.exc import ArgumentError

from db_toolkit.errors import NestedTransactionError
from db_toolkit.io.database.executor import insert
from db_toolkit.io.database.transactions import (
    begin_safe,
    commit_safe,
    execute_multiple_in_transaction,
    run_in_transaction,
    transaction_scope,
)


class UnitOfWorkFailed(Exception):
    pass


@pytest.mark.integration
class TestRunInTransaction:
    def test_success_is_durable(self, engine, config, count_users):
        def work(conn, transaction):
            insert(conn, "Users", {"Name": "Ann", "Age": 30}, transaction=transaction, config=config)
            insert(conn, "Users", {"Name": "Bob", "Age": 31}, transaction=transaction, config=config)
            return "done"

        assert run_in_transaction(engine, work, config=config) == "done"
        assert count_users() == 2

    def test_failure_leaves_table_unchanged(self, engine, config, count_users):
        error = UnitOfWorkFailed("boom")

        def work(conn, transaction):
            insert(conn, "Users", {"Name": "Ann", "Age": 30}, transaction=transaction, config=config)
            raise error

        with pytest.raises(UnitOfWorkFailed) as exc_info:
            run_in_transaction(engine, work, config=config)

        assert exc_info.value is error
        assert count_users() == 0

    def test_no_result_unit(self, engine, config, count_users):
        def work(conn, transaction):
            conn.execute(text("INSERT INTO Users (Name) VALUES ('Cy')"))

        assert run_in_transaction(engine, work, config=config) is None
        assert count_users() == 1

    def test_open_connection_stays_open(self, engine, config):
        with engine.connect() as conn:
            run_in_transaction(
                conn,
                lambda c, t: c.execute(text("INSERT INTO Users (Name) VALUES ('Di')")),
                config=config,
            )
            assert not conn.closed
            assert not conn.in_transaction()

    def test_explicit_isolation_level(self, engine, config, count_users):
        run_in_transaction(
            engine,
            lambda c, t: c.execute(text("INSERT INTO Users (Name) VALUES ('Ed')")),
            isolation_level="SERIALIZABLE",
        )
        assert count_users() == 1

    def test_nested_scope_rejected(self, engine, config):
        with engine.connect() as conn:
            with conn.begin():
                with pytest.raises(NestedTransactionError):
                    run_in_transaction(conn, lambda c, t: None, config=config)


@pytest.mark.integration
class TestTransactionScope:
    def test_commit_on_exit(self, engine, config, count_users):
        with transaction_scope(engine, config=config) as (conn, transaction):
            assert transaction.is_active
            conn.execute(text("INSERT INTO Users (Name) VALUES ('Fay')"))
        assert count_users() == 1

    def test_rollback_on_error(self, engine, config, count_users):
        with pytest.raises(UnitOfWorkFailed):
            with transaction_scope(engine, config=config) as (conn, _):
                conn.execute(text("INSERT INTO Users (Name) VALUES ('Gus')"))
                raise UnitOfWorkFailed()
        assert count_users() == 0

    def test_driver_error_propagates_unchanged(self, engine, config, count_users):
        from sqlalchemy.exc import IntegrityError

        with pytest.raises(IntegrityError):
            with transaction_scope(engine, config=config) as (conn, _):
                conn.execute(text("INSERT INTO Users (Name) VALUES ('Hal')"))
                conn.execute(text("INSERT INTO Users (Name) VALUES (NULL)"))
        assert count_users() == 0


@pytest.mark.integration
class TestManualTransactions:
    def test_begin_and_commit_safe(self, engine, config, count_users):
        transaction = begin_safe(engine, config=config)
        conn = transaction.connection
        try:
            conn.execute(text("INSERT INTO Users (Name) VALUES ('Ivy')"))
            commit_safe(transaction)
            assert not transaction.is_active
        finally:
            conn.close()
        assert count_users() == 1


@pytest.mark.integration
class TestExecuteMultiple:
    def test_commands_run_in_order(self, engine, config, count_users):
        affected = execute_multiple_in_transaction(
            engine,
            [
                ("INSERT INTO Users (Name, Age) VALUES (:n, :a)", {"n": "Jo", "a": 20}),
                ("INSERT INTO Users (Name, Age) VALUES (:n, :a)", [{"n": "Kim", "a": 21}, {"n": "Lu", "a": 22}]),
                ("UPDATE Users SET Age = Age + 1", None),
            ],
            config=config,
        )
        assert affected == 6
        assert count_users() == 3

    def test_failure_rolls_back_every_command(self, engine, config, count_users):
        from sqlalchemy.exc import IntegrityError

        with pytest.raises(IntegrityError):
            execute_multiple_in_transaction(
                engine,
                [
                    ("INSERT INTO Users (Name) VALUES ('Mo')", None),
                    ("INSERT INTO Users (Name) VALUES (NULL)", None),
                ],
                config=config,
            )
        assert count_users() == 0


@pytest.mark.integration
class TestDefaultIsolationLevel:
    """SQLite has no READ COMMITTED; the stock defaults must still work."""

    def test_run_in_transaction_without_config(self, engine, count_users):
        run_in_transaction(
            engine,
            lambda conn, transaction: conn.execute(
                text("INSERT INTO Users (Name) VALUES ('x')")
            ),
        )
        assert count_users() == 1

    def test_scope_and_batch_without_config(self, engine, count_users):
        with transaction_scope(engine) as (conn, _):
            conn.execute(text("INSERT INTO Users (Name) VALUES ('a')"))
        assert execute_multiple_in_transaction(
            engine, [("INSERT INTO Users (Name) VALUES ('b')", None)]
        ) == 1
        assert count_users() == 2

    def test_begin_safe_without_config(self, engine, count_users):
        transaction = begin_safe(engine)
        transaction.connection.execute(text("INSERT INTO Users (Name) VALUES ('c')"))
        commit_safe(transaction)
        transaction.connection.close()
        assert count_users() == 1

    def test_explicit_unsupported_level_raises(self, engine, count_users):
        with pytest.raises(ArgumentError, match="READ COMMITTED"):
            run_in_transaction(engine, lambda conn, transaction: None, "READ COMMITTED")
        assert count_users() == 0
