"""
Vault Exception Classes

Every failure carries an ErrorKind so callers can branch on the kind of
problem instead of matching message text. The underlying error (if any) is
kept on ``cause`` and chained with ``raise ... from``.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Kinds of failure a vault operation can report."""
    CONFIGURATION = "configuration"
    ALGORITHM_MISMATCH = "algorithm_mismatch"
    IO_ERROR = "io_error"
    MALFORMED_DATA = "malformed_data"
    AUTHENTICATION_FAILED = "authentication_failed"
    ENTRY_DELETED = "entry_deleted"
    NOT_FOUND = "not_found"
    AMBIGUOUS_MATCH = "ambiguous_match"


class VaultError(Exception):
    """Base exception for vault operations"""

    kind: ErrorKind = ErrorKind.CONFIGURATION

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        path: Optional[str] = None,
        entry_uuid: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.path = path
        self.entry_uuid = entry_uuid

    def __str__(self) -> str:
        text = self.message
        if self.path:
            text += f" ({self.path})"
        if self.entry_uuid:
            text += f" [entry {self.entry_uuid}]"
        if self.cause is not None:
            text += f": {self.cause}"
        return text


class ConfigurationError(VaultError):
    """Raised when credentials are missing or do not match the vault setup"""
    kind = ErrorKind.CONFIGURATION


class VaultNotOpenError(ConfigurationError):
    """Raised when the vault is queried before open() or after close()"""
    pass


class AlgorithmMismatchError(VaultError):
    """Raised when the vault declares a KDF or cipher we do not implement"""
    kind = ErrorKind.ALGORITHM_MISMATCH


class VaultIOError(VaultError):
    """Raised when a vault file cannot be read"""
    kind = ErrorKind.IO_ERROR


class VaultNotFoundError(VaultIOError):
    """Raised when the vault database or info file does not exist"""
    pass


class MalformedDataError(VaultError):
    """Raised when vault info, keyfile or ciphertext cannot be parsed"""
    kind = ErrorKind.MALFORMED_DATA


class AuthenticationFailedError(VaultError):
    """Raised on a wrong key: unreadable store or a failed GCM tag check"""
    kind = ErrorKind.AUTHENTICATION_FAILED


class EntryDeletedError(VaultError):
    """Raised when decrypting a tombstoned entry (no nonce left)"""
    kind = ErrorKind.ENTRY_DELETED


class EntryNotFoundError(VaultError):
    """Raised when no entry matches a query"""
    kind = ErrorKind.NOT_FOUND


class AmbiguousMatchError(VaultError):
    """Raised when a unique query matches more than one entry"""
    kind = ErrorKind.AMBIGUOUS_MATCH
