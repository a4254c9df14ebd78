# Enpass Reader - Main Package
#
# Read-only access to Enpass password vaults: derive the database key from
# the master password (and keyfile), open the SQLCipher store and decrypt
# individual entries.

__version__ = "0.1.0"
__description__ = "Read-only Enpass vault reader"

from .core import AuditLogger, EventSeverity, EventType
from .vault import (
    Card,
    ErrorKind,
    Vault,
    VaultCredentials,
    VaultError,
    VaultInfo,
)

__all__ = [
    "__version__",
    "AuditLogger",
    "EventType",
    "EventSeverity",
    "Card",
    "ErrorKind",
    "Vault",
    "VaultCredentials",
    "VaultError",
    "VaultInfo",
]
