"""Unit tests for connection string protection."""

import base64
import json
import logging

import pytest

from db_toolkit.errors import DecryptionError, InvalidInputError
from db_toolkit.security.connection_protector import (
    ENCRYPTED_PREFIX,
    decrypt,
    decrypt_password,
    encrypt,
    encrypt_password,
    is_encrypted,
)

KEY = "my-secret-key"
DESCRIPTOR = "Server=localhost;Database=MyDb;User Id=sa;Password=secret123;Encrypt=true"


@pytest.mark.unit
class TestIsEncrypted:
    def test_envelope_is_encrypted(self):
        assert is_encrypted(encrypt("plain", KEY))

    def test_prefix_is_case_insensitive(self):
        assert is_encrypted("encrypted:abc")
        assert is_encrypted("Encrypted:abc")

    @pytest.mark.parametrize("value", [None, "", "Server=db;", "XENCRYPTED:abc"])
    def test_untagged_values(self, value):
        assert not is_encrypted(value)


@pytest.mark.unit
class TestEncryptDecrypt:
    def test_round_trip(self):
        assert decrypt(encrypt(DESCRIPTOR, KEY), KEY) == DESCRIPTOR

    def test_round_trip_unicode(self):
        value = "Server=資料庫;Password=密碼"
        assert decrypt(encrypt(value, KEY), KEY) == value

    def test_envelope_layout(self):
        envelope = encrypt(DESCRIPTOR, KEY)
        assert envelope.startswith(ENCRYPTED_PREFIX)
        raw = base64.b64decode(envelope[len(ENCRYPTED_PREFIX) :])
        # 16-byte IV followed by whole AES blocks
        assert len(raw) > 16
        assert (len(raw) - 16) % 16 == 0

    def test_fresh_iv_per_encryption(self):
        assert encrypt(DESCRIPTOR, KEY) != encrypt(DESCRIPTOR, KEY)

    def test_wrong_key_fails(self):
        envelope = encrypt(DESCRIPTOR, KEY)
        with pytest.raises(DecryptionError) as exc_info:
            decrypt(envelope, "another-key")
        assert str(exc_info.value) == DecryptionError.DEFAULT_MESSAGE
        assert exc_info.value.__cause__ is None

    def test_failure_is_logged_without_secrets(self, caplog):
        caplog.set_level(logging.WARNING)
        envelope = encrypt(DESCRIPTOR, KEY)
        with pytest.raises(DecryptionError):
            decrypt(envelope, "another-key")

        log_data = json.loads(caplog.records[-1].message)
        assert log_data["event"] == "security.connection_string.decryption_failed"
        assert log_data["error_type"] == "DecryptionError"
        assert log_data["message"] == DecryptionError.DEFAULT_MESSAGE
        assert "secret123" not in caplog.text
        assert "another-key" not in caplog.text

    def test_encrypt_is_noop_on_envelope(self):
        envelope = encrypt(DESCRIPTOR, KEY)
        assert encrypt(envelope, KEY) == envelope

    def test_decrypt_is_noop_on_plain_text(self):
        assert decrypt(DESCRIPTOR, KEY) == DESCRIPTOR

    @pytest.mark.parametrize(
        "envelope",
        ["ENCRYPTED:not base64!!", "ENCRYPTED:", "ENCRYPTED:" + base64.b64encode(b"short").decode()],
    )
    def test_corrupted_envelope(self, envelope):
        with pytest.raises(DecryptionError):
            decrypt(envelope, KEY)

    @pytest.mark.parametrize("plaintext,key", [("", KEY), (None, KEY), ("x", ""), ("x", None)])
    def test_encrypt_requires_inputs(self, plaintext, key):
        with pytest.raises(InvalidInputError):
            encrypt(plaintext, key)

    def test_decrypt_requires_key(self):
        with pytest.raises(InvalidInputError):
            decrypt(encrypt("x", KEY), "")


@pytest.mark.unit
class TestPasswordProtection:
    def test_only_password_segment_changes(self):
        protected = encrypt_password(DESCRIPTOR, KEY)
        prefix = "Server=localhost;Database=MyDb;User Id=sa;Password="
        assert protected.startswith(prefix + ENCRYPTED_PREFIX)
        assert protected.endswith(";Encrypt=true")
        assert "secret123" not in protected

    def test_round_trip(self):
        assert decrypt_password(encrypt_password(DESCRIPTOR, KEY), KEY) == DESCRIPTOR

    def test_password_at_end_without_semicolon(self):
        descriptor = "Host=db;Username=svc;Pwd=p@ss"
        protected = encrypt_password(descriptor, KEY)
        assert protected.startswith("Host=db;Username=svc;Pwd=ENCRYPTED:")
        assert decrypt_password(protected, KEY) == descriptor

    def test_marker_is_case_insensitive(self):
        protected = encrypt_password("server=db;PASSWORD=abc;", KEY)
        assert protected.startswith("server=db;PASSWORD=ENCRYPTED:")

    def test_already_encrypted_password_untouched(self):
        protected = encrypt_password(DESCRIPTOR, KEY)
        assert encrypt_password(protected, KEY) == protected

    def test_empty_password_untouched(self):
        assert encrypt_password("Server=db;Password=;", KEY) == "Server=db;Password=;"

    def test_descriptor_without_password_unchanged(self):
        descriptor = "Server=db;Integrated Security=true"
        assert encrypt_password(descriptor, KEY) == descriptor
        assert decrypt_password(descriptor, KEY) == descriptor

    def test_similar_field_names_not_matched(self):
        descriptor = "Server=db;OldPassword=keep;Password=change"
        protected = encrypt_password(descriptor, KEY)
        assert "OldPassword=keep;" in protected
        assert "Password=ENCRYPTED:" in protected

    def test_requires_inputs(self):
        with pytest.raises(InvalidInputError):
            encrypt_password("", KEY)
        with pytest.raises(InvalidInputError):
            decrypt_password(DESCRIPTOR, "")
