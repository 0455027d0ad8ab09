"""
SQL identifier handling utilities.

Table and column names are structural input: by default they are emitted
verbatim, and callers can opt in to dialect quoting. These helpers implement
that quoting.
"""

from typing import Optional


def quote_identifier(name: str, dialect: str = "postgresql") -> str:
    """
    Quote a SQL identifier (table or column name).

    Args:
        name: The identifier to quote
        dialect: Database dialect ("postgresql", "sqlite", "mysql", "mssql", ...)

    Returns:
        Properly quoted identifier

    Examples:
        >>> quote_identifier("UserName")
        '"UserName"'
        >>> quote_identifier("table", dialect="mysql")
        '`table`'
        >>> quote_identifier("Order Details", dialect="mssql")
        '[Order Details]'
    """
    if not name or not isinstance(name, str):
        raise ValueError("Identifier name must be non-empty string")

    if dialect == "mysql":
        escaped = name.replace("`", "``")
        return f"`{escaped}`"
    if dialect == "mssql":
        escaped = name.replace("]", "]]")
        return f"[{escaped}]"
    # ANSI double quotes; internal quotes are doubled
    escaped = name.replace('"', '""')
    return f'"{escaped}"'


def qualify_table(
    table: str, schema: Optional[str] = None, dialect: str = "postgresql"
) -> str:
    """
    Create a fully qualified, quoted table name.

    A dotted ``schema.table`` name is split and both parts are quoted. A name
    that already contains quote characters is assumed to be pre-quoted by the
    caller and is returned unchanged.

    Examples:
        >>> qualify_table("Users")
        '"Users"'
        >>> qualify_table("Users", schema="dbo", dialect="mssql")
        '[dbo].[Users]'
        >>> qualify_table("sales.Orders")
        '"sales"."Orders"'
    """
    if not table or not isinstance(table, str):
        raise ValueError("Table name must be non-empty string")

    if any(ch in table for ch in '"`['):
        return table

    if schema is None and "." in table:
        schema_part, table_part = table.split(".", 1)
        if schema_part.strip() and table_part.strip():
            schema, table = schema_part.strip(), table_part.strip()

    quoted_table = quote_identifier(table, dialect)
    if schema and schema.strip():
        return f"{quote_identifier(schema.strip(), dialect)}.{quoted_table}"
    return quoted_table
