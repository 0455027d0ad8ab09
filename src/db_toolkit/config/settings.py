"""
Configuration management for DbToolkit.

This module provides environment-based configuration using Pydantic BaseSettings.
Values are read from the process environment and from an optional ``.env`` file
at the project root (override the location with ``DBTK_ENV_FILE``).
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from db_toolkit.config.data_access import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_COMMAND_TIMEOUT,
    DEFAULT_KEY_COLUMN,
    DEFAULT_PAGE_SIZE,
    DataAccessConfig,
    IsolationLevel,
)


# Determine project root for resolving .env by default
PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
ENV_FILE_OVERRIDE = os.getenv("DBTK_ENV_FILE")
if ENV_FILE_OVERRIDE:
    env_file_candidate = Path(ENV_FILE_OVERRIDE).expanduser()
    if not env_file_candidate.is_absolute():
        env_file_candidate = PROJECT_ROOT / env_file_candidate
    SETTINGS_ENV_FILE = env_file_candidate
else:
    SETTINGS_ENV_FILE = DEFAULT_ENV_FILE


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Uppercase fields are read from unprefixed variables (``LOG_LEVEL``,
    ``DB_BATCH_SIZE``...). Lowercase fields use the ``DBTK_`` prefix, e.g.
    ``DBTK_CONNECTIONS_CONFIG``.

    The encryption key is read from ``DB_ENCRYPTION_KEY`` (or
    ``DBTK_ENCRYPTION_KEY``) and is never logged.
    """

    LOG_LEVEL: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level (uppercase)",
    )
    DB_ENCRYPTION_KEY: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DB_ENCRYPTION_KEY", "DBTK_ENCRYPTION_KEY"),
        description="Key used to decrypt protected connection strings",
    )
    DB_KEY_COLUMN: str = Field(
        default=DEFAULT_KEY_COLUMN,
        validation_alias="DB_KEY_COLUMN",
        description="Default primary key column for generated statements",
    )
    DB_BATCH_SIZE: int = Field(
        default=DEFAULT_BATCH_SIZE,
        ge=1,
        validation_alias="DB_BATCH_SIZE",
        description="Batch size for chunked bulk operations",
    )
    DB_PAGE_SIZE: int = Field(
        default=DEFAULT_PAGE_SIZE,
        ge=1,
        validation_alias="DB_PAGE_SIZE",
        description="Fallback page size for paged queries",
    )
    DB_COMMAND_TIMEOUT: Optional[int] = Field(
        default=DEFAULT_COMMAND_TIMEOUT,
        validation_alias="DB_COMMAND_TIMEOUT",
        description="Statement timeout in seconds",
    )
    DB_ISOLATION_LEVEL: IsolationLevel = Field(
        default=IsolationLevel.READ_COMMITTED,
        validation_alias="DB_ISOLATION_LEVEL",
        description="Isolation level for transaction scopes",
    )
    DB_QUOTE_IDENTIFIERS: bool = Field(
        default=False,
        validation_alias="DB_QUOTE_IDENTIFIERS",
        description="Quote table and column names in generated SQL",
    )

    app_name: str = Field(default="DbToolkit", description="Application name")
    connections_config: str = Field(
        default="./config/connections.yml",
        description="Path to the connection strings configuration file",
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("DB_ISOLATION_LEVEL", mode="before")
    @classmethod
    def _normalize_isolation_level(cls, value: object) -> object:
        # Accept READ_COMMITTED / read committed / Read Committed alike
        if isinstance(value, str):
            return value.strip().upper().replace("_", " ")
        return value

    def data_access(self) -> DataAccessConfig:
        """Build the explicit data-access defaults from these settings."""
        return DataAccessConfig(
            key_column=self.DB_KEY_COLUMN,
            batch_size=self.DB_BATCH_SIZE,
            page_size=self.DB_PAGE_SIZE,
            order_by=self.DB_KEY_COLUMN,
            isolation_level=self.DB_ISOLATION_LEVEL,
            command_timeout=self.DB_COMMAND_TIMEOUT,
            quote_identifiers=self.DB_QUOTE_IDENTIFIERS,
        )

    model_config = SettingsConfigDict(
        env_prefix="DBTK_",
        env_file=str(SETTINGS_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance with loaded configuration
    """
    return Settings()
