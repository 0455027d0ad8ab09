"""Connection-secret protection."""

from .connection_protector import (
    ENCRYPTED_PREFIX,
    decrypt,
    decrypt_password,
    encrypt,
    encrypt_password,
    is_encrypted,
)

__all__ = [
    "ENCRYPTED_PREFIX",
    "decrypt",
    "decrypt_password",
    "encrypt",
    "encrypt_password",
    "is_encrypted",
]
