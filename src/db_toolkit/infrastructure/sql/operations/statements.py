"""
SQL statement builders for single-entity CRUD.

Statements are generated from a record shape at call time. Every value is
bound as a parameter; table names, key columns and WHERE fragments are
trusted structural input.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple

from sqlalchemy import bindparam, text
from sqlalchemy.sql.elements import TextClause

from db_toolkit.config.data_access import DEFAULT_CONFIG, DataAccessConfig
from db_toolkit.errors import InvalidInputError, StatementGenerationError

from ..core.parameters import build_bind_names, remap_records
from ..core.record_shape import inspect_record, record_fields
from ..dialects import AnsiDialect

DELETE_KEY_PARAM = "Id"
DELETE_KEYS_PARAM = "Ids"


class Dialect(Protocol):
    """Protocol for SQL dialects."""

    name: str

    def quote(self, identifier: str) -> str: ...
    def qualify(self, table: str) -> str: ...
    def build_insert(
        self, table: str, columns: List[str], placeholders: List[str]
    ) -> str: ...
    def build_insert_returning(
        self, table: str, columns: List[str], placeholders: List[str], key_column: str
    ) -> str: ...
    def build_update(
        self, table: str, columns: List[str], placeholders: List[str], key_column: str, key_placeholder: str
    ) -> str: ...
    def build_delete(self, table: str, where_clause: str) -> str: ...


@dataclass(frozen=True)
class SqlStatement:
    """
    Generated statement text plus the information needed to bind it.

    Attributes:
        sql: Statement text with ``:name`` placeholders
        columns: Ordered column list (placeholder order matches)
        bind_names: Record field name -> bind parameter name
        expanding: Bind parameters that take a list value (``IN :Ids``)
    """

    sql: str
    columns: Tuple[str, ...] = ()
    bind_names: Dict[str, str] = field(default_factory=dict)
    expanding: Tuple[str, ...] = ()

    def bind(self, record: Any) -> Dict[str, Any]:
        """Build the parameter mapping for one record."""
        return self.bind_many([record])[0]

    def bind_many(self, records: List[Any]) -> List[Dict[str, Any]]:
        return remap_records([inspect_record(r) for r in records], self.bind_names)

    def clause(self) -> TextClause:
        """Return the statement as a SQLAlchemy text clause."""
        clause = text(self.sql)
        if self.expanding:
            clause = clause.bindparams(
                *(bindparam(name, expanding=True) for name in self.expanding)
            )
        return clause

    def __str__(self) -> str:
        return self.sql


class StatementBuilder:
    """
    Builds INSERT / UPDATE / DELETE statements from record shapes.

    Example:
        >>> builder = StatementBuilder()
        >>> stmt = builder.build_insert("Users", {"Id": 1, "Name": "Ann", "Age": 30})
        >>> print(stmt)
        INSERT INTO Users (Name, Age) VALUES (:Name, :Age)
    """

    def __init__(
        self,
        dialect: Optional[Dialect] = None,
        config: Optional[DataAccessConfig] = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self.dialect = dialect or AnsiDialect(
            quote_identifiers=self.config.quote_identifiers
        )

    def _key(self, key_field: Optional[str]) -> str:
        key = key_field if key_field is not None else self.config.key_column
        if not key:
            raise InvalidInputError("key_field")
        return key

    @staticmethod
    def _check_table(table: str) -> None:
        if not table or not str(table).strip():
            raise InvalidInputError("table")

    def _value_columns(self, table: str, record: Any, key: str) -> List[str]:
        columns = [name for name, _ in record_fields(record, key)]
        if not columns:
            raise StatementGenerationError(
                f"Record for table '{table}' has no fields besides key '{key}'"
            )
        return columns

    def build_insert(
        self, table: str, record: Any, key_field: Optional[str] = None
    ) -> SqlStatement:
        """
        Build an INSERT over every non-key field of the record.

        Args:
            table: Table name
            record: Record whose fields become the column list
            key_field: Key column excluded from the insert (default from config)

        Returns:
            SqlStatement

        Raises:
            InvalidInputError: Empty table or key name
            StatementGenerationError: Record has no non-key fields
        """
        self._check_table(table)
        key = self._key(key_field)
        columns = self._value_columns(table, record, key)
        bind_names = build_bind_names(columns)
        placeholders = [f":{bind_names[c]}" for c in columns]
        sql = self.dialect.build_insert(table, columns, placeholders)
        return SqlStatement(sql=sql, columns=tuple(columns), bind_names=bind_names)

    def build_insert_returning_key(
        self, table: str, record: Any, key_field: Optional[str] = None
    ) -> SqlStatement:
        """Build an INSERT that returns the generated key of the new row."""
        self._check_table(table)
        key = self._key(key_field)
        columns = self._value_columns(table, record, key)
        bind_names = build_bind_names(columns)
        placeholders = [f":{bind_names[c]}" for c in columns]
        sql = self.dialect.build_insert_returning(table, columns, placeholders, key)
        return SqlStatement(sql=sql, columns=tuple(columns), bind_names=bind_names)

    def build_update(
        self, table: str, record: Any, key_field: Optional[str] = None
    ) -> SqlStatement:
        """
        Build an UPDATE of every non-key field, matched on the key field.

        Raises:
            InvalidInputError: Empty table or key name
            StatementGenerationError: Record lacks the key or has no other fields
        """
        self._check_table(table)
        key = self._key(key_field)
        shape = inspect_record(record)
        if key not in shape:
            raise StatementGenerationError(
                f"Record for table '{table}' is missing key field '{key}'"
            )
        columns = self._value_columns(table, shape, key)
        bind_names = build_bind_names(columns + [key])
        placeholders = [f":{bind_names[c]}" for c in columns]
        sql = self.dialect.build_update(
            table, columns, placeholders, key, f":{bind_names[key]}"
        )
        return SqlStatement(sql=sql, columns=tuple(columns), bind_names=bind_names)

    def build_delete_by_key(
        self, table: str, key_field: Optional[str] = None
    ) -> SqlStatement:
        """Build ``DELETE ... WHERE key = :Id``."""
        self._check_table(table)
        key = self._key(key_field)
        sql = self.dialect.build_delete(
            table, f"{self.dialect.quote(key)} = :{DELETE_KEY_PARAM}"
        )
        return SqlStatement(sql=sql, bind_names={key: DELETE_KEY_PARAM})

    def build_delete_in(
        self, table: str, key_field: Optional[str] = None
    ) -> SqlStatement:
        """Build ``DELETE ... WHERE key IN :Ids`` with an expanding parameter."""
        self._check_table(table)
        key = self._key(key_field)
        sql = self.dialect.build_delete(
            table, f"{self.dialect.quote(key)} IN :{DELETE_KEYS_PARAM}"
        )
        return SqlStatement(
            sql=sql,
            bind_names={key: DELETE_KEYS_PARAM},
            expanding=(DELETE_KEYS_PARAM,),
        )

    def build_delete_where(self, table: str, where_clause: str) -> SqlStatement:
        """Build a DELETE with a caller-supplied predicate (trusted input)."""
        self._check_table(table)
        if not where_clause or not where_clause.strip():
            raise InvalidInputError("where_clause")
        return SqlStatement(sql=self.dialect.build_delete(table, where_clause))
