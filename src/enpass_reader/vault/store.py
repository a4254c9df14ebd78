# Vault - Encrypted Store
#
# Thin adapter over SQLCipher (sqlcipher3). Opens vault.enpassdb with the
# derived key and iterates the joined item/itemfield rows.
#
# A wrong key does not produce an explicit cipher error from SQLCipher: the
# pages simply don't decode. We detect it by probing for the `item` table.

import logging
from collections import namedtuple
from pathlib import Path
from typing import Any, Iterator, Optional, Union

from .encryption import SecretKey
from .exceptions import (
    AuthenticationFailedError,
    ConfigurationError,
    VaultIOError,
    VaultNotOpenError,
)

logger = logging.getLogger(__name__)

# The raw SQLCipher key is the first 64 hex characters (32 bytes) of the
# derived 64-byte key.
RAW_KEY_HEX_LENGTH = 64
# Enpass databases use SQLCipher 3 defaults
CIPHER_COMPATIBILITY = 3
SENTINEL_TABLE = "item"

StoreRow = namedtuple(
    "StoreRow",
    [
        "uuid", "type", "created_at", "updated_at", "title",
        "subtitle", "note", "trashed", "deleted", "category",
        "label", "value", "key", "last_used", "sensitive", "icon",
    ],
)

ENTRIES_QUERY = """
    SELECT uuid, type, created_at, field_updated_at, title,
           subtitle, note, trashed, item.deleted, category,
           label, value, key, last_used, sensitive, item.icon
    FROM item
    INNER JOIN itemfield ON uuid = item_uuid
"""


class EncryptedStore:
    """
    SQLCipher-backed row store for an Enpass vault.

    Lifecycle: open(key) → iter_rows() → close(). close() is idempotent.
    """

    def __init__(self, database_path: Union[str, Path]):
        self.database_path = Path(database_path)
        self.conn: Optional[Any] = None

    def __enter__(self) -> "EncryptedStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self.conn is not None

    @staticmethod
    def raw_key_pragma(key: Union[SecretKey, bytes]) -> str:
        """Build the PRAGMA key statement for a derived key."""
        key_hex = key.hex()
        if len(key_hex) < RAW_KEY_HEX_LENGTH:
            raise ConfigurationError(
                f"database key must be at least {RAW_KEY_HEX_LENGTH // 2} bytes, got {len(key_hex) // 2}"
            )
        return f"PRAGMA key = \"x'{key_hex[:RAW_KEY_HEX_LENGTH]}'\""

    def open(self, key: Union[SecretKey, bytes]) -> None:
        """
        Open the database with the derived key and verify it is readable.

        Raises:
            ConfigurationError: Key too short
            VaultIOError: Database cannot be opened at all
            AuthenticationFailedError: Key does not decrypt the database
        """
        if self.conn is not None:
            return

        key_pragma = self.raw_key_pragma(key)
        from sqlcipher3 import dbapi2 as sqlcipher

        try:
            conn = sqlcipher.connect(str(self.database_path))
        except sqlcipher.Error as e:
            raise VaultIOError("could not open database", cause=e, path=str(self.database_path)) from e

        try:
            conn.execute(key_pragma)
            conn.execute(f"PRAGMA cipher_compatibility = {CIPHER_COMPATIBILITY}")
            row = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
                (SENTINEL_TABLE,),
            ).fetchone()
        except sqlcipher.DatabaseError as e:
            conn.close()
            raise AuthenticationFailedError(
                "could not connect to database", cause=e, path=str(self.database_path)
            ) from e

        if row is None or row[0] != SENTINEL_TABLE:
            conn.close()
            raise AuthenticationFailedError(
                "could not connect to database", path=str(self.database_path)
            )

        self.conn = conn
        logger.debug("opened encrypted database %s", self.database_path)

    def iter_rows(self) -> Iterator[StoreRow]:
        """
        Yield joined item/itemfield rows in the store's natural order.

        Raises:
            VaultNotOpenError: Store is not open
            VaultIOError: Query failed
        """
        if self.conn is None:
            raise VaultNotOpenError("vault is not initialized")

        from sqlcipher3 import dbapi2 as sqlcipher

        try:
            cursor = self.conn.execute(ENTRIES_QUERY)
        except sqlcipher.Error as e:
            raise VaultIOError(
                "could not retrieve cards from database", cause=e, path=str(self.database_path)
            ) from e

        for row in cursor:
            yield StoreRow(*row)

    def close(self) -> None:
        """Close the connection. Safe to call repeatedly."""
        if self.conn is not None:
            try:
                self.conn.close()
            finally:
                self.conn = None
            logger.debug("closed encrypted database %s", self.database_path)
