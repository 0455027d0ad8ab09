"""Shared utilities."""

from db_toolkit.utils.logging import (
    bind_context,
    get_logger,
    mask_connection_string,
    sanitize_for_logging,
)

__all__ = [
    "bind_context",
    "get_logger",
    "mask_connection_string",
    "sanitize_for_logging",
]
