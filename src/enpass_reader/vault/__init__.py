# Vault Module - Enpass Vault Reader
#
# Read-only access to Enpass vaults: SQLCipher database opened with a
# PBKDF2-HMAC-SHA512 key, per-entry AES-256-GCM secrets.

from .card import Card
from .encryption import EntryDecryptor, KeyDeriver, SecretKey
from .exceptions import (
    AlgorithmMismatchError,
    AmbiguousMatchError,
    AuthenticationFailedError,
    ConfigurationError,
    EntryDeletedError,
    EntryNotFoundError,
    ErrorKind,
    MalformedDataError,
    VaultError,
    VaultIOError,
    VaultNotFoundError,
    VaultNotOpenError,
)
from .keyfile import load_keyfile
from .store import EncryptedStore, StoreRow
from .vault_info import VaultInfo, load_vault_info
from .vault_manager import Vault, VaultCredentials

__all__ = [
    "Vault",
    "VaultCredentials",
    "VaultInfo",
    "load_vault_info",
    "load_keyfile",
    "KeyDeriver",
    "EntryDecryptor",
    "SecretKey",
    "EncryptedStore",
    "StoreRow",
    "Card",
    # Errors
    "ErrorKind",
    "VaultError",
    "ConfigurationError",
    "VaultNotOpenError",
    "AlgorithmMismatchError",
    "VaultIOError",
    "VaultNotFoundError",
    "MalformedDataError",
    "AuthenticationFailedError",
    "EntryDeletedError",
    "EntryNotFoundError",
    "AmbiguousMatchError",
]
