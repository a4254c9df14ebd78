# Vault Manager - Enpass Vault Session
#
# vault.json → key derivation → SQLCipher open → card queries
#
# One Vault owns the derived key and the store handle for its lifetime.
# Not thread-safe: callers serialise access to a single instance.

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from ..core import AuditLogger, EventSeverity, EventType
from .card import Card
from .encryption import KeyDeriver, SecretKey
from .exceptions import (
    AmbiguousMatchError,
    ConfigurationError,
    EntryNotFoundError,
    ErrorKind,
    VaultError,
    VaultNotFoundError,
    VaultNotOpenError,
)
from .store import EncryptedStore
from .vault_info import VaultInfo, load_vault_info

logger = logging.getLogger(__name__)

# filename of the SQLCipher vault file
VAULT_FILENAME = "vault.enpassdb"
# contains info about your vault
VAULT_INFO_FILENAME = "vault.json"


@dataclass
class VaultCredentials:
    """Master password, optional keyfile, or an already derived key."""
    password: Optional[str] = None
    keyfile_path: Optional[Union[str, Path]] = None
    db_key: Optional[bytes] = None

    def is_complete(self) -> bool:
        return bool(self.password) or self.db_key is not None

    def __repr__(self) -> str:
        return (
            f"VaultCredentials(password={'***' if self.password else None}, "
            f"keyfile_path={self.keyfile_path!r}, db_key={'***' if self.db_key else None})"
        )


class Vault:
    """
    Read-only session over an Enpass vault directory.

    Usage:
        with Vault("/path/to/vault", logger=AuditLogger()) as vault:
            vault.open(VaultCredentials(password="..."))
            card = vault.get_entry("password", ["github"], unique=True)
            secret = card.decrypt()

    Lifecycle: construct (checks files, loads vault.json) → open() →
    get_entries()/get_entry() → close(). close() is idempotent.
    """

    def __init__(self, vault_path: Union[str, Path], logger: Optional[AuditLogger] = None):
        """
        Args:
            vault_path: Directory containing vault.enpassdb and vault.json
            logger: Audit logger for this session (a quiet one is created if None)

        Raises:
            ConfigurationError: Empty path
            VaultNotFoundError: Database or info file missing
            MalformedDataError: vault.json unusable
        """
        if not vault_path:
            raise ConfigurationError("empty vault path provided")

        self.logger = logger or AuditLogger()

        vault_dir = Path(os.path.realpath(vault_path))
        self.database_filename = vault_dir / VAULT_FILENAME
        self.vault_info_filename = vault_dir / VAULT_INFO_FILENAME
        self._check_paths()

        self.vault_info: VaultInfo = load_vault_info(self.vault_info_filename)
        self.store = EncryptedStore(self.database_filename)
        self._db_key: Optional[SecretKey] = None

        self.logger.log_vault_event(
            EventType.VAULT_INFO_LOADED,
            "vault info loaded",
            details={
                "db_path": str(self.database_filename),
                "info_path": str(self.vault_info_filename),
                "vault_name": self.vault_info.vault_name,
                "vault_version": self.vault_info.version,
            },
        )

    def __enter__(self) -> "Vault":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self.store.is_open

    def _check_paths(self) -> None:
        if not self.database_filename.exists():
            raise VaultNotFoundError("vault does not exist", path=str(self.database_filename))
        if not self.vault_info_filename.exists():
            raise VaultNotFoundError("vault info file does not exist", path=str(self.vault_info_filename))

    def _generate_db_key(self, credentials: VaultCredentials) -> SecretKey:
        # pre-derived keys included
        self.vault_info.check_algorithms()

        if credentials.db_key is not None:
            logger.debug("skipping database key generation, already set")
            return SecretKey(credentials.db_key)

        if not credentials.password:
            raise ConfigurationError("empty vault password provided")

        if not credentials.keyfile_path and self.vault_info.have_keyfile:
            raise ConfigurationError("you should specify a keyfile")
        if credentials.keyfile_path and not self.vault_info.have_keyfile:
            raise ConfigurationError("you are specifying an unnecessary keyfile")

        logger.debug("deriving decryption key")
        key = KeyDeriver.derive_for_vault(
            self.vault_info,
            self.database_filename,
            credentials.password,
            keyfile_path=credentials.keyfile_path,
        )
        self.logger.log_vault_event(
            EventType.KEY_DERIVED,
            "database key derived",
            details={"kdf_iter": self.vault_info.kdf_iter},
        )
        return key

    def open(self, credentials: VaultCredentials) -> None:
        """
        Derive the key and open the encrypted database. Call this before
        doing anything else.

        Raises:
            ConfigurationError: Incomplete credentials or keyfile mismatch
            AlgorithmMismatchError: vault.json declares unsupported algorithms
            AuthenticationFailedError: Wrong password, keyfile or key
            VaultIOError / MalformedDataError: Unreadable vault files
        """
        if self.is_open:
            return

        if not credentials.is_complete():
            raise ConfigurationError("vault credentials are incomplete: password or database key required")

        key: Optional[SecretKey] = None
        try:
            key = self._generate_db_key(credentials)
            self.store.open(key)
        except Exception as e:
            if key is not None:
                key.wipe()
            if isinstance(e, VaultError):
                self.logger.log_event(
                    event_type=EventType.VAULT_UNLOCK_FAILED,
                    severity=EventSeverity.ALERT if e.kind == ErrorKind.AUTHENTICATION_FAILED else EventSeverity.CRITICAL,
                    message=f"Vault unlock failed: {e.message}",
                    details={"kind": e.kind.value, "path": e.path},
                )
            raise

        self._db_key = key
        self.logger.log_vault_event(
            EventType.VAULT_OPENED,
            "vault opened",
            details={"vault_name": self.vault_info.vault_name},
        )

    def close(self) -> None:
        """Close the database and wipe the key. Always safe to call."""
        was_open = self.store.is_open
        try:
            self.store.close()
        finally:
            if self._db_key is not None:
                self._db_key.wipe()
                self._db_key = None

        if was_open:
            self.logger.log_vault_event(EventType.VAULT_CLOSED, "vault closed")

    def _require_open(self) -> None:
        if not self.store.is_open:
            raise VaultNotOpenError("vault is not initialized")

    def get_entries(self, card_type: str = "", filters: Sequence[str] = ()) -> List[Card]:
        """
        Return the cards in the vault, in store order.

        Args:
            card_type: Exact type to keep ("" = any)
            filters: Title substrings, any of which must match (case-insensitive)

        Raises:
            VaultNotOpenError: open() was not called
            VaultIOError: Query failed
        """
        self._require_open()

        lowered_filters = [f.lower() for f in filters]
        cards: List[Card] = []

        for row in self.store.iter_rows():
            card = Card.from_row(row)

            # if item has been deleted
            if card.is_deleted():
                continue

            if card_type and card.type != card_type:
                continue

            if lowered_filters:
                title = card.title.lower()
                if not any(f in title for f in lowered_filters):
                    continue

            cards.append(card)

        return cards

    def get_entry(self, card_type: str = "", filters: Sequence[str] = (), unique: bool = False) -> Card:
        """
        Return the first live card matching the filters.

        Raises:
            AmbiguousMatchError: unique=True and more than one card matches
            EntryNotFoundError: No live card matches
        """
        found: Optional[Card] = None
        for card in self.get_entries(card_type, filters):
            if card.is_trashed() or card.is_deleted():
                continue
            if found is None:
                found = card
                if not unique:
                    break
            else:
                raise AmbiguousMatchError(
                    "multiple cards match that title",
                    entry_uuid=found.uuid,
                )

        if found is None:
            raise EntryNotFoundError("card not found")

        self.logger.log_vault_event(
            EventType.VAULT_ENTRY_ACCESSED,
            "entry accessed",
            details={"uuid": found.uuid, "type": found.type},
        )
        return found

    @staticmethod
    def decrypt_entries(cards: Iterable[Card]) -> List[Tuple[Card, Union[str, VaultError]]]:
        """
        Decrypt every card, collecting per-card failures instead of raising,
        so a single bad entry doesn't stop the rest.
        """
        results: List[Tuple[Card, Union[str, VaultError]]] = []
        for card in cards:
            try:
                results.append((card, card.decrypt()))
            except VaultError as e:
                logger.debug("could not decrypt card %s: %s", card.uuid, e.kind.value)
                results.append((card, e))
        return results
