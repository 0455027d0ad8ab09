"""Integration tests for paged queries against SQLite."""

from dataclasses import dataclass

import pytest

from db_toolkit.io.database.paging import query_paged

BASE = "SELECT Id, Name, Age FROM Users"


@dataclass
class UserRow:
    Id: int
    Name: str
    Age: int


@pytest.mark.integration
class TestQueryPaged:
    def test_second_page(self, seeded_engine, config):
        with seeded_engine.connect() as conn:
            result = query_paged(conn, BASE, page_number=2, page_size=10, config=config)

        assert result.total_count == 25
        assert [row["Id"] for row in result.data] == list(range(11, 21))
        assert result.page_number == 2
        assert result.page_size == 10
        assert result.total_pages == 3
        assert result.has_next_page

    def test_last_partial_page(self, seeded_engine, config):
        with seeded_engine.connect() as conn:
            result = query_paged(conn, BASE, page_number=3, page_size=10, config=config)
        assert [row["Id"] for row in result.data] == list(range(21, 26))
        assert not result.has_next_page

    def test_page_zero_equals_page_one(self, seeded_engine, config):
        with seeded_engine.connect() as conn:
            zero = query_paged(conn, BASE, page_number=0, page_size=10, config=config)
            one = query_paged(conn, BASE, page_number=1, page_size=10, config=config)
        assert zero.data == one.data
        assert zero.page_number == 1

    def test_size_zero_equals_default_size(self, seeded_engine, config):
        with seeded_engine.connect() as conn:
            zero = query_paged(conn, BASE, page_number=1, page_size=0, config=config)
            ten = query_paged(conn, BASE, page_number=1, page_size=10, config=config)
        assert zero.data == ten.data
        assert zero.page_size == 10

    def test_parameters_bound_to_both_queries(self, seeded_engine, config):
        with seeded_engine.connect() as conn:
            result = query_paged(
                conn,
                f"{BASE} WHERE Age > :min_age",
                page_number=1,
                page_size=3,
                params={"min_age": 39},
                config=config,
            )
        # Ages are 21..45, so Ids 20..25 qualify
        assert result.total_count == 6
        assert [row["Id"] for row in result.data] == [20, 21, 22]

    def test_order_by_and_row_type(self, seeded_engine, config):
        with seeded_engine.connect() as conn:
            result = query_paged(
                conn, BASE, page_size=2, order_by="Id DESC", row_type=UserRow, config=config
            )
        assert result.data == [UserRow(25, "User 25", 45), UserRow(24, "User 24", 44)]

    def test_page_beyond_end(self, seeded_engine, config):
        with seeded_engine.connect() as conn:
            result = query_paged(conn, BASE, page_number=9, page_size=10, config=config)
        assert result.data == []
        assert result.total_count == 25

    def test_connection_left_idle(self, seeded_engine, config):
        with seeded_engine.connect() as conn:
            query_paged(conn, BASE, config=config)
            assert not conn.in_transaction()
