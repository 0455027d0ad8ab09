"""Configuration management for DbToolkit.

Usage:
    >>> from db_toolkit.config import get_settings
    >>> settings = get_settings()
    >>> config = settings.data_access()
"""

from db_toolkit.config.connections import (
    ConnectionsConfig,
    EncryptionSection,
    load_connections_config,
)
from db_toolkit.config.data_access import (
    DEFAULT_CONFIG,
    DataAccessConfig,
    IsolationLevel,
)
from db_toolkit.config.settings import Settings, get_settings

__all__ = [
    "ConnectionsConfig",
    "DEFAULT_CONFIG",
    "DataAccessConfig",
    "EncryptionSection",
    "IsolationLevel",
    "Settings",
    "get_settings",
    "load_connections_config",
]
