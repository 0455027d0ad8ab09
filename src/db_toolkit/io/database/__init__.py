"""
Database access over SQLAlchemy connections.

This module provides transaction scopes, execute/query helpers, bulk and
chunked operations, paged queries and connection provisioning.
"""

from .bulk import (
    bulk_delete,
    bulk_execute,
    bulk_insert,
    bulk_insert_in_batches,
    bulk_update,
    bulk_update_in_batches,
    chunk_records,
)
from .connection_factory import (
    create_and_open,
    create_and_open_from_config,
    create_engine,
    create_from_config,
    detect_database_type,
    resolve_descriptor,
    to_url,
)
from .executor import (
    delete,
    delete_where,
    execute,
    execute_scalar,
    execute_stored_procedure,
    insert,
    insert_with_id,
    query_first_or_default,
    query_list,
    query_multiple,
    query_single,
    query_single_or_default,
    query_stored_procedure,
    update,
)
from .models import CommandKind, DatabaseType, PagedResult
from .paging import query_paged
from .transactions import (
    begin_safe,
    commit_safe,
    execute_multiple_in_transaction,
    run_in_transaction,
    transaction_scope,
)

__all__ = [
    "CommandKind",
    "DatabaseType",
    "PagedResult",
    "begin_safe",
    "bulk_delete",
    "bulk_execute",
    "bulk_insert",
    "bulk_insert_in_batches",
    "bulk_update",
    "bulk_update_in_batches",
    "chunk_records",
    "commit_safe",
    "create_and_open",
    "create_and_open_from_config",
    "create_engine",
    "create_from_config",
    "delete",
    "delete_where",
    "detect_database_type",
    "execute",
    "execute_multiple_in_transaction",
    "execute_scalar",
    "execute_stored_procedure",
    "insert",
    "insert_with_id",
    "query_first_or_default",
    "query_list",
    "query_multiple",
    "query_paged",
    "query_single",
    "query_single_or_default",
    "query_stored_procedure",
    "resolve_descriptor",
    "run_in_transaction",
    "to_url",
    "transaction_scope",
    "update",
]
