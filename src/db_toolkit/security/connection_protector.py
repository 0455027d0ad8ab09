"""
At-rest protection for connection descriptors.

Envelope format::

    ENCRYPTED:<base64(iv || ciphertext)>

The cipher is AES-256-CBC with PKCS7 padding; the 32-byte key is the SHA-256
digest of the UTF-8 key string and the 16-byte IV is random per encryption.
The prefix check is case-insensitive. Encrypting an envelope and decrypting
plain text are both no-ops.
"""

import base64
import binascii
import hashlib
import os
import re
from typing import Callable, Optional

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from db_toolkit.errors import DecryptionError, EncryptionError, InvalidInputError
from db_toolkit.utils.logging import get_logger

logger = get_logger(__name__)

ENCRYPTED_PREFIX = "ENCRYPTED:"

_IV_SIZE = 16
_BLOCK_SIZE_BITS = 128

# Password=... / Pwd=... up to the next ';' or end of string
_PASSWORD_FIELD = re.compile(r"(?i)\b(password|pwd)=([^;]*)")


def _derive_key(key: str) -> bytes:
    return hashlib.sha256(key.encode("utf-8")).digest()


def is_encrypted(value: Optional[str]) -> bool:
    """
    Return True when ``value`` carries the encrypted-envelope prefix.

    Examples:
        >>> is_encrypted("encrypted:abc")
        True
        >>> is_encrypted("Server=db;")
        False
    """
    if not value:
        return False
    return value[: len(ENCRYPTED_PREFIX)].upper() == ENCRYPTED_PREFIX


def encrypt(plaintext: str, key: str) -> str:
    """
    Encrypt a value into an ``ENCRYPTED:`` envelope.

    Args:
        plaintext: Value to protect
        key: Encryption key string

    Returns:
        Envelope string; an existing envelope is returned unchanged

    Raises:
        InvalidInputError: Empty plaintext or key
        EncryptionError: The cipher rejected the input
    """
    if not plaintext:
        raise InvalidInputError("plaintext")
    if not key:
        raise InvalidInputError("key")
    if is_encrypted(plaintext):
        return plaintext

    try:
        iv = os.urandom(_IV_SIZE)
        padder = padding.PKCS7(_BLOCK_SIZE_BITS).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
        encryptor = Cipher(algorithms.AES(_derive_key(key)), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
    except (ValueError, TypeError, UnicodeEncodeError) as e:
        raise EncryptionError("Failed to encrypt connection string") from e

    return ENCRYPTED_PREFIX + base64.b64encode(iv + ciphertext).decode("ascii")


def decrypt(envelope: str, key: str) -> str:
    """
    Decrypt an ``ENCRYPTED:`` envelope.

    Args:
        envelope: Envelope string (plain text is returned unchanged)
        key: Encryption key string

    Returns:
        The original plaintext

    Raises:
        InvalidInputError: Empty envelope or key
        DecryptionError: Wrong key or corrupted envelope
    """
    if not envelope:
        raise InvalidInputError("envelope")
    if not key:
        raise InvalidInputError("key")
    if not is_encrypted(envelope):
        return envelope

    try:
        combined = base64.b64decode(envelope[len(ENCRYPTED_PREFIX) :], validate=True)
        iv, ciphertext = combined[:_IV_SIZE], combined[_IV_SIZE:]
        if len(iv) != _IV_SIZE or not ciphertext:
            raise ValueError("envelope too short")
        decryptor = Cipher(algorithms.AES(_derive_key(key)), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(_BLOCK_SIZE_BITS).unpadder()
        plaintext = (unpadder.update(padded) + unpadder.finalize()).decode("utf-8")
    except (binascii.Error, ValueError, UnicodeDecodeError):
        error = DecryptionError()
        logger.warning("security.connection_string.decryption_failed", **error.to_dict())
        raise error from None

    logger.debug("security.connection_string.decrypted")
    return plaintext


def _transform_passwords(
    descriptor: str,
    key: str,
    should_transform: Callable[[str], bool],
    transform: Callable[[str, str], str],
) -> str:
    if not descriptor:
        raise InvalidInputError("descriptor")
    if not key:
        raise InvalidInputError("key")

    def _replace(match: "re.Match[str]") -> str:
        value = match.group(2)
        if not value or not should_transform(value):
            return match.group(0)
        return f"{match.group(1)}={transform(value, key)}"

    return _PASSWORD_FIELD.sub(_replace, descriptor)


def encrypt_password(descriptor: str, key: str) -> str:
    """
    Encrypt only the ``Password=`` / ``Pwd=`` values inside a descriptor.

    Every other character of the descriptor is preserved.

    Example:
        >>> encrypt_password("Server=db;Password=secret;", "k")  # doctest: +ELLIPSIS
        'Server=db;Password=ENCRYPTED:...;'
    """
    return _transform_passwords(
        descriptor, key, lambda value: not is_encrypted(value), encrypt
    )


def decrypt_password(descriptor: str, key: str) -> str:
    """Decrypt the encrypted ``Password=`` / ``Pwd=`` values inside a descriptor."""
    return _transform_passwords(descriptor, key, is_encrypted, decrypt)
