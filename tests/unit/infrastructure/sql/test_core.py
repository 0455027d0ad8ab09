"""
Unit tests for SQL core utilities: identifier and parameters.
"""

import pytest

from db_toolkit.infrastructure.sql.core.identifier import (
    quote_identifier,
    qualify_table,
)
from db_toolkit.infrastructure.sql.core.parameters import (
    build_bind_names,
    build_indexed_params,
    is_bindable,
    remap_records,
)


@pytest.mark.unit
class TestQuoteIdentifier:
    """Tests for quote_identifier function."""

    def test_quote_ascii_column(self):
        """ASCII column names should be double-quoted."""
        assert quote_identifier("UserName") == '"UserName"'

    def test_quote_with_internal_quotes(self):
        """Internal double quotes should be escaped."""
        assert quote_identifier('column"name') == '"column""name"'

    def test_quote_mysql_dialect(self):
        """MySQL dialect should use backticks."""
        assert quote_identifier("order", dialect="mysql") == "`order`"

    def test_quote_mssql_dialect(self):
        """SQL Server uses brackets and doubles closing brackets."""
        assert quote_identifier("Order Details", dialect="mssql") == "[Order Details]"
        assert quote_identifier("a]b", dialect="mssql") == "[a]]b]"

    def test_empty_name_raises(self):
        with pytest.raises(ValueError):
            quote_identifier("")


@pytest.mark.unit
class TestQualifyTable:
    """Tests for qualify_table function."""

    def test_qualify_with_schema(self):
        assert qualify_table("Users", schema="dbo", dialect="mssql") == "[dbo].[Users]"

    def test_qualify_without_schema(self):
        assert qualify_table("Users") == '"Users"'

    def test_dotted_name_is_split(self):
        assert qualify_table("sales.Orders") == '"sales"."Orders"'

    def test_prequoted_name_unchanged(self):
        assert qualify_table('"sales"."Orders"') == '"sales"."Orders"'


@pytest.mark.unit
class TestBindNames:
    """Tests for bind parameter naming."""

    def test_is_bindable(self):
        assert is_bindable("Name")
        assert is_bindable("_private1")
        assert not is_bindable("E-mail")
        assert not is_bindable("Full Name")
        assert not is_bindable("1st")

    def test_identity_when_all_bindable(self):
        assert build_bind_names(["Name", "Age"]) == {"Name": "Name", "Age": "Age"}

    def test_indexed_when_any_not_bindable(self):
        assert build_bind_names(["Name", "E-mail"]) == {"Name": "col_0", "E-mail": "col_1"}

    def test_indexed_params(self):
        col_map, placeholders = build_indexed_params(["年金计划号", "计划全称"])
        assert col_map == {"年金计划号": "col_0", "计划全称": "col_1"}
        assert placeholders == [":col_0", ":col_1"]

    def test_remap_records_drops_unmapped(self):
        records = [{"E-mail": "a@b.c", "Id": 1}, {"E-mail": "d@e.f", "Id": 2}]
        assert remap_records(records, {"E-mail": "col_0"}) == [
            {"col_0": "a@b.c"},
            {"col_0": "d@e.f"},
        ]
