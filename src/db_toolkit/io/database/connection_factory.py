"""
Connection provisioning.

Turns a connection descriptor into a SQLAlchemy engine or open connection.
Descriptors are either SQLAlchemy URLs (``postgresql+psycopg2://...``) or
``Key=Value;`` strings (``Host=db;Database=app;Username=svc;Password=...``).
Descriptors read from configuration are decrypted transparently, both as a
whole-descriptor envelope and as embedded encrypted passwords.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

from sqlalchemy import create_engine as sa_create_engine
from sqlalchemy.engine import URL, Connection, Engine, make_url

from db_toolkit.config.connections import ConnectionsConfig, load_connections_config
from db_toolkit.config.settings import Settings, get_settings
from db_toolkit.errors import ConfigurationError, InvalidInputError
from db_toolkit.io.database.models import DatabaseType
from db_toolkit.security.connection_protector import (
    decrypt,
    decrypt_password,
    is_encrypted,
)
from db_toolkit.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CONNECTION_NAME = "DefaultConnection"

DRIVER_NAMES: Dict[DatabaseType, str] = {
    DatabaseType.SQL_SERVER: "mssql+pyodbc",
    DatabaseType.MYSQL: "mysql+pymysql",
    DatabaseType.POSTGRESQL: "postgresql+psycopg2",
    DatabaseType.SQLITE: "sqlite",
    DatabaseType.ORACLE: "oracle+oracledb",
}

DEFAULT_ODBC_DRIVER = "ODBC Driver 18 for SQL Server"

_BACKEND_TYPES: Dict[str, DatabaseType] = {
    "mssql": DatabaseType.SQL_SERVER,
    "mysql": DatabaseType.MYSQL,
    "mariadb": DatabaseType.MYSQL,
    "postgresql": DatabaseType.POSTGRESQL,
    "sqlite": DatabaseType.SQLITE,
    "oracle": DatabaseType.ORACLE,
}

_HOST_KEYS = ("server", "data source", "host", "address", "addr")
_DATABASE_KEYS = ("database", "initial catalog", "dbname")
_USER_KEYS = ("user id", "uid", "username", "user name", "user")
_PASSWORD_KEYS = ("password", "pwd")


def _is_url(descriptor: str) -> bool:
    return "://" in descriptor


def parse_descriptor(descriptor: str) -> Dict[str, str]:
    """
    Split a ``Key=Value;`` descriptor into a dict with lower-cased keys.

    Examples:
        >>> parse_descriptor("Server=db;Database=app;")
        {'server': 'db', 'database': 'app'}
    """
    fields: Dict[str, str] = {}
    for part in descriptor.split(";"):
        if "=" not in part:
            continue
        name, value = part.split("=", 1)
        fields[name.strip().lower()] = value.strip()
    return fields


def _first(fields: Dict[str, str], names: tuple) -> Optional[str]:
    for name in names:
        if fields.get(name):
            return fields[name]
    return None


def detect_database_type(
    descriptor: str, configured_type: Union[DatabaseType, str, None] = None
) -> DatabaseType:
    """
    Determine the database family of a descriptor.

    An explicitly configured type wins. URLs are classified by their scheme;
    ``Key=Value;`` descriptors by their keys, defaulting to SQL Server.

    Examples:
        >>> detect_database_type("Host=db;Database=app")
        <DatabaseType.POSTGRESQL: 'postgresql'>
        >>> detect_database_type("Data Source=app.db")
        <DatabaseType.SQLITE: 'sqlite'>
    """
    if configured_type:
        if isinstance(configured_type, DatabaseType):
            return configured_type
        try:
            return DatabaseType.parse(configured_type)
        except ValueError:
            logger.warning(
                "database.connection.unknown_configured_type",
                configured_type=configured_type,
            )

    if not descriptor:
        raise InvalidInputError("descriptor")

    if _is_url(descriptor):
        backend = make_url(descriptor).get_backend_name()
        return _BACKEND_TYPES.get(backend, DatabaseType.SQL_SERVER)

    lowered = descriptor.lower()
    if "server=" in lowered or "data source=" in lowered:
        if ".db" in lowered or "sqlite" in lowered:
            return DatabaseType.SQLITE
        return DatabaseType.SQL_SERVER
    if "host=" in lowered:
        return DatabaseType.POSTGRESQL
    if "mysql" in lowered:
        return DatabaseType.MYSQL
    return DatabaseType.SQL_SERVER


def to_url(descriptor: str, database_type: Optional[DatabaseType] = None) -> URL:
    """
    Convert a descriptor into a SQLAlchemy URL.

    URLs are parsed as-is; ``Key=Value;`` descriptors are mapped onto
    ``URL.create`` for the detected (or given) database type.
    """
    if not descriptor:
        raise InvalidInputError("descriptor")
    if _is_url(descriptor):
        return make_url(descriptor)

    database_type = database_type or detect_database_type(descriptor)
    fields = parse_descriptor(descriptor)
    drivername = DRIVER_NAMES[database_type]

    if database_type == DatabaseType.SQLITE:
        return URL.create(drivername, database=_first(fields, _HOST_KEYS + _DATABASE_KEYS))

    host = _first(fields, _HOST_KEYS)
    port: Optional[int] = int(fields["port"]) if fields.get("port") else None
    if host and database_type == DatabaseType.SQL_SERVER and "," in host:
        host, port_text = host.split(",", 1)
        port = int(port_text)
    elif host and ":" in host and port is None:
        host, port_text = host.rsplit(":", 1)
        port = int(port_text)

    query: Dict[str, str] = {}
    if database_type == DatabaseType.SQL_SERVER:
        query["driver"] = fields.get("driver", DEFAULT_ODBC_DRIVER)
        if fields.get("trustservercertificate"):
            query["TrustServerCertificate"] = fields["trustservercertificate"]

    return URL.create(
        drivername,
        username=_first(fields, _USER_KEYS),
        password=_first(fields, _PASSWORD_KEYS),
        host=host,
        port=port,
        database=_first(fields, _DATABASE_KEYS),
        query=query,
    )


def create_engine(
    descriptor: str,
    database_type: Union[DatabaseType, str, None] = None,
    **engine_kwargs: Any,
) -> Engine:
    """
    Create a SQLAlchemy engine for a plaintext descriptor.

    Raises:
        InvalidInputError: Empty or still-encrypted descriptor
    """
    if not descriptor:
        raise InvalidInputError("descriptor")
    if is_encrypted(descriptor):
        raise InvalidInputError("descriptor", "Descriptor is encrypted; decrypt it first")

    resolved_type = detect_database_type(descriptor, database_type)
    url = to_url(descriptor, resolved_type)
    engine = sa_create_engine(url, **engine_kwargs)
    logger.info(
        "database.connection.engine_created",
        database_type=resolved_type.value,
        url=url.render_as_string(hide_password=True),
    )
    return engine


def create_and_open(
    descriptor: str,
    database_type: Union[DatabaseType, str, None] = None,
    **engine_kwargs: Any,
) -> Connection:
    """Create an engine for the descriptor and return an open connection."""
    return create_engine(descriptor, database_type, **engine_kwargs).connect()


def _load_config(
    config: Union[ConnectionsConfig, str, Path, None], settings: Settings
) -> ConnectionsConfig:
    if isinstance(config, ConnectionsConfig):
        return config
    return load_connections_config(config or settings.connections_config)


def _resolve_key(
    explicit_key: Optional[str], config: ConnectionsConfig, settings: Settings
) -> str:
    key = explicit_key or config.encryption.key or settings.DB_ENCRYPTION_KEY
    if not key:
        raise ConfigurationError(
            "Encryption key not found; set DB_ENCRYPTION_KEY or encryption.key"
        )
    return key


def resolve_descriptor(
    config: Union[ConnectionsConfig, str, Path, None] = None,
    name: str = DEFAULT_CONNECTION_NAME,
    encryption_key: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> str:
    """
    Return the plaintext descriptor registered under ``name``.

    Key precedence: ``encryption_key``, then the config's ``encryption.key``,
    then ``DB_ENCRYPTION_KEY`` from settings. The key is only required when
    something is encrypted.

    Raises:
        ConfigurationError: Missing descriptor, or missing key for an
            encrypted descriptor
        DecryptionError: Wrong key or corrupted envelope
    """
    settings = settings or get_settings()
    connections = _load_config(config, settings)
    descriptor = connections.get_connection_string(name)
    if not descriptor:
        raise ConfigurationError(f"Connection string not found: {name}")

    if is_encrypted(descriptor):
        descriptor = decrypt(descriptor, _resolve_key(encryption_key, connections, settings))
        logger.info("security.connection_string.decrypted", connection_name=name)

    if any(is_encrypted(value) for value in parse_descriptor(descriptor).values()):
        descriptor = decrypt_password(
            descriptor, _resolve_key(encryption_key, connections, settings)
        )
        logger.info("security.connection_password.decrypted", connection_name=name)

    return descriptor


def create_from_config(
    config: Union[ConnectionsConfig, str, Path, None] = None,
    name: str = DEFAULT_CONNECTION_NAME,
    encryption_key: Optional[str] = None,
    settings: Optional[Settings] = None,
    **engine_kwargs: Any,
) -> Engine:
    """
    Create an engine for a named descriptor from a connections config.

    Args:
        config: ConnectionsConfig, path to a YAML file, or None to load
            ``settings.connections_config``
        name: Connection name
        encryption_key: Explicit key, overriding config and environment
        settings: Settings instance (cached settings when None)
        **engine_kwargs: Passed to ``sqlalchemy.create_engine``
    """
    settings = settings or get_settings()
    connections = _load_config(config, settings)
    descriptor = resolve_descriptor(connections, name, encryption_key, settings)
    return create_engine(
        descriptor, connections.get_database_type(name), **engine_kwargs
    )


def create_and_open_from_config(
    config: Union[ConnectionsConfig, str, Path, None] = None,
    name: str = DEFAULT_CONNECTION_NAME,
    encryption_key: Optional[str] = None,
    settings: Optional[Settings] = None,
    **engine_kwargs: Any,
) -> Connection:
    """Same as :func:`create_from_config`, returning an open connection."""
    return create_from_config(
        config, name, encryption_key, settings, **engine_kwargs
    ).connect()
