"""
Connection strings configuration.

Loads named connection descriptors from a YAML file. Both snake_case keys and
the ``ConnectionStrings`` / ``DatabaseTypes`` / ``Encryption`` section names
used by appsettings-style files are accepted, and since YAML is a superset of
JSON an ``appsettings.json`` file loads as-is.

Example ``config/connections.yml``::

    connection_strings:
      DefaultConnection: "Host=db;Database=app;Username=svc;Password=ENCRYPTED:..."
      Reporting: "ENCRYPTED:..."
    database_types:
      Reporting: sqlserver
    encryption:
      key: null   # prefer the DB_ENCRYPTION_KEY environment variable
"""

from pathlib import Path
from typing import Dict, Optional, Union

import structlog
import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from db_toolkit.errors import ConfigurationError

logger = structlog.get_logger(__name__)


class EncryptionSection(BaseModel):
    """Encryption settings block."""

    model_config = ConfigDict(extra="ignore")

    key: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("key", "Key")
    )


class ConnectionsConfig(BaseModel):
    """Named connection descriptors plus optional per-name database types."""

    model_config = ConfigDict(extra="ignore")

    connection_strings: Dict[str, str] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("connection_strings", "ConnectionStrings"),
    )
    database_types: Dict[str, str] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("database_types", "DatabaseTypes"),
    )
    encryption: EncryptionSection = Field(
        default_factory=EncryptionSection,
        validation_alias=AliasChoices("encryption", "Encryption"),
    )

    def get_connection_string(self, name: str) -> Optional[str]:
        """Return the named descriptor, or None when it is missing or blank."""
        value = self.connection_strings.get(name)
        return value or None

    def get_database_type(self, name: str) -> Optional[str]:
        """Return the configured database type name for a connection, if any."""
        return self.database_types.get(name) or None


def load_connections_config(path: Union[str, Path]) -> ConnectionsConfig:
    """
    Load and validate a connections configuration file.

    Args:
        path: Path to a YAML (or JSON) file

    Returns:
        Validated ConnectionsConfig

    Raises:
        ConfigurationError: If the file is missing, unparsable or invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        logger.error("configuration.file_not_found", config_path=str(config_path))
        raise ConfigurationError(f"Connections configuration not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        logger.error(
            "configuration.yaml_parse_error", config_path=str(config_path), error=str(e)
        )
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}") from e

    if not isinstance(raw_config, dict):
        raise ConfigurationError("Connections configuration must be a mapping")

    try:
        config = ConnectionsConfig.model_validate(raw_config)
    except ValidationError as e:
        logger.error(
            "configuration.validation_failed", config_path=str(config_path), error=str(e)
        )
        raise ConfigurationError(f"Configuration validation failed: {e}") from e

    logger.info(
        "configuration.loaded",
        config_path=str(config_path),
        connection_names=sorted(config.connection_strings),
    )
    return config
