"""Unit tests for structured logging and secret redaction."""

import json
import logging

import pytest

from db_toolkit.utils.logging import (
    REDACTED_VALUE,
    bind_context,
    get_logger,
    mask_connection_string,
    sanitization_processor,
    sanitize_for_logging,
)


@pytest.mark.unit
def test_get_logger_emits_json(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO)

    logger = get_logger("db_toolkit.tests.logging")
    logger.info("database.transaction.committed", isolation_level="SERIALIZABLE")

    log_data = json.loads(caplog.records[-1].message)
    assert log_data["event"] == "database.transaction.committed"
    assert log_data["logger"] == "db_toolkit.tests.logging"
    assert log_data["isolation_level"] == "SERIALIZABLE"
    assert "timestamp" in log_data


@pytest.mark.unit
def test_secrets_never_reach_output(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO)

    get_logger("db_toolkit.tests.logging").info(
        "security.connection_string.decrypted",
        connection_name="DefaultConnection",
        encryption_key="super-secret",
        connection_string="Server=db;Password=123",
    )

    log_data = json.loads(caplog.records[-1].message)
    assert log_data["encryption_key"] == REDACTED_VALUE
    assert log_data["connection_string"] == REDACTED_VALUE
    assert log_data["connection_name"] == "DefaultConnection"
    assert "super-secret" not in caplog.records[-1].message


@pytest.mark.unit
def test_bind_context(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO)

    logger = bind_context(table="Users", operation="bulk_insert")
    logger.info("database.bulk.batch_completed", batch=1, affected=1000)

    log_data = json.loads(caplog.records[-1].message)
    assert log_data["table"] == "Users"
    assert log_data["operation"] == "bulk_insert"
    assert log_data["affected"] == 1000


@pytest.mark.unit
class TestSanitizeForLogging:
    @pytest.mark.parametrize(
        "key", ["password", "DB_PASSWORD", "pwd", "client_secret", "access_token", "key"]
    )
    def test_redacts_sensitive_keys(self, key):
        assert sanitize_for_logging({key: "x", "user": "admin"}) == {
            key: REDACTED_VALUE,
            "user": "admin",
        }

    def test_keeps_key_like_but_harmless_names(self):
        data = {"key_column": "Id", "batch_size": 1000}
        assert sanitize_for_logging(data) == data

    def test_nested(self):
        sanitized = sanitize_for_logging({"encryption": {"encryption_key": "k", "mode": "cbc"}})
        assert sanitized == {"encryption": {"encryption_key": REDACTED_VALUE, "mode": "cbc"}}

    def test_input_not_mutated(self):
        data = {"password": "secret"}
        sanitize_for_logging(data)
        assert data == {"password": "secret"}


@pytest.mark.unit
def test_sanitization_processor():
    event_dict = {"event": "x", "descriptor": "Server=db;Pwd=1", "rows": 3}
    result = sanitization_processor(logging.getLogger("t"), "info", event_dict)
    assert result == {"event": "x", "descriptor": REDACTED_VALUE, "rows": 3}


@pytest.mark.unit
@pytest.mark.parametrize(
    "descriptor, expected",
    [
        (
            "Server=db;User Id=sa;Password=123;",
            "Server=db;User Id=sa;Password=[REDACTED];",
        ),
        ("Host=db;pwd=abc", "Host=db;pwd=[REDACTED]"),
        ("Host=db;Database=app", "Host=db;Database=app"),
    ],
)
def test_mask_connection_string(descriptor, expected):
    assert mask_connection_string(descriptor) == expected
