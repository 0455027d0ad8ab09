"""Exception hierarchy for DbToolkit.

Driver and SQLAlchemy failures raised while executing a statement are never
wrapped: they propagate to the caller unchanged. The classes below cover the
conditions the toolkit detects on its own, before or around I/O.
"""

from typing import Dict


class DataAccessError(Exception):
    """Base class for errors raised by the toolkit itself."""


class InvalidInputError(DataAccessError, ValueError):
    """Raised when a required argument is missing or empty."""

    def __init__(self, argument: str, message: str = ""):
        self.argument = argument
        super().__init__(message or f"'{argument}' must be a non-empty value")


class StatementGenerationError(DataAccessError, ValueError):
    """Raised when a record shape cannot produce a valid statement."""


class NestedTransactionError(DataAccessError):
    """Raised when a transaction scope is requested on a connection that
    already has an active transaction."""


class ConfigurationError(DataAccessError):
    """Raised when a connection descriptor or encryption key cannot be found."""


class CredentialError(DataAccessError):
    """Base class for connection-secret protection failures."""


class EncryptionError(CredentialError):
    """Raised when a plaintext value cannot be encrypted."""


class DecryptionError(CredentialError):
    """Raised when an envelope cannot be decoded or decrypted.

    The message is deliberately generic: wrong keys and corrupted envelopes
    are reported the same way.
    """

    DEFAULT_MESSAGE = "Failed to decrypt connection string, verify the encryption key"

    def __init__(self, message: str = DEFAULT_MESSAGE):
        super().__init__(message)

    def to_dict(self) -> Dict[str, str]:
        """Convert to structured dict for logging."""
        return {"error_type": type(self).__name__, "message": str(self)}
