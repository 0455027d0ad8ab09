"""Unit tests for the pagination planner."""

import pytest

from db_toolkit.errors import InvalidInputError
from db_toolkit.infrastructure.sql.dialects import SQLiteDialect
from db_toolkit.infrastructure.sql.operations.paging import plan_page

BASE = "SELECT * FROM Users WHERE Age > :min_age"


@pytest.mark.unit
class TestPlanPage:
    def test_second_page(self):
        plan = plan_page(BASE, page_number=2, page_size=10)
        assert plan.offset == 10
        assert plan.count_query == f"SELECT COUNT(*) FROM ({BASE}) AS CountTable"
        assert plan.data_query == (
            f"SELECT * FROM ({BASE}) AS PagedTable ORDER BY Id "
            "OFFSET 10 ROWS FETCH NEXT 10 ROWS ONLY"
        )

    @pytest.mark.parametrize("page_number", [0, -3, None])
    def test_page_below_one_is_first_page(self, page_number):
        plan = plan_page(BASE, page_number=page_number, page_size=10)
        assert plan.page_number == 1
        assert plan.offset == 0

    @pytest.mark.parametrize("page_size", [0, -1, None])
    def test_size_below_one_uses_default(self, page_size):
        plan = plan_page(BASE, page_number=1, page_size=page_size)
        assert plan.page_size == 10

    def test_custom_default_page_size(self):
        assert plan_page(BASE, page_size=0, default_page_size=25).page_size == 25

    @pytest.mark.parametrize("order_by", [None, "", "  "])
    def test_empty_order_by_defaults_to_id(self, order_by):
        assert "ORDER BY Id " in plan_page(BASE, order_by=order_by).data_query

    def test_custom_order_by(self):
        assert "ORDER BY Name DESC, Id " in plan_page(BASE, order_by="Name DESC, Id").data_query

    def test_sqlite_window(self):
        plan = plan_page(BASE, page_number=3, page_size=5, dialect=SQLiteDialect())
        assert plan.data_query.endswith("ORDER BY Id LIMIT 5 OFFSET 10")

    def test_empty_base_query_raises(self):
        with pytest.raises(InvalidInputError):
            plan_page("  ")
