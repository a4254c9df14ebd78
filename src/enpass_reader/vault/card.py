# Vault - Card (one Enpass entry field)

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .encryption import EntryDecryptor
from .exceptions import MalformedDataError
from .store import StoreRow


@dataclass
class Card:
    """
    One decryptable secret from the vault.

    The store joins item and itemfield, so a logical item with several
    fields shows up as several cards sharing the same uuid and title.
    """
    # plaintext
    uuid: str
    type: str
    created_at: int = 0
    updated_at: int = 0
    title: str = ""
    subtitle: str = ""
    note: str = ""
    trashed: int = 0
    deleted: int = 0
    category: str = ""
    label: str = ""
    last_used: int = 0
    sensitive: bool = False
    icon: str = ""
    raw_value: str = ""

    # encrypted
    _value: str = field(default="", repr=False)
    _item_key: bytes = field(default=b"", repr=False)
    _cleartext: Optional[str] = field(default=None, repr=False, compare=False)

    @classmethod
    def from_row(cls, row: StoreRow) -> "Card":
        value = row.value or ""
        return cls(
            uuid=row.uuid,
            type=row.type or "",
            created_at=row.created_at or 0,
            updated_at=row.updated_at or 0,
            title=row.title or "",
            subtitle=row.subtitle or "",
            note=row.note or "",
            trashed=row.trashed or 0,
            deleted=row.deleted or 0,
            category=row.category or "",
            label=row.label or "",
            last_used=row.last_used or 0,
            sensitive=bool(row.sensitive),
            icon=row.icon or "",
            raw_value=value,
            _value=value,
            _item_key=bytes(row.key or b""),
        )

    def is_trashed(self) -> bool:
        return self.trashed != 0

    def is_deleted(self) -> bool:
        return self.deleted != 0

    def decrypt(self, cache: bool = False) -> str:
        """
        Decrypt the card value.

        Args:
            cache: Keep the cleartext on the card for later calls

        Raises:
            EntryDeletedError, MalformedDataError, AuthenticationFailedError
        """
        if self._cleartext is not None:
            return self._cleartext

        data = EntryDecryptor.decrypt(self._item_key, self._value, self.uuid)
        try:
            plaintext = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedDataError("card value is not valid UTF-8", cause=e, entry_uuid=self.uuid) from e

        if cache:
            self._cleartext = plaintext
        return plaintext

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uuid": self.uuid,
            "type": self.type,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "title": self.title,
            "subtitle": self.subtitle,
            "note": self.note,
            "trashed": self.is_trashed(),
            "deleted": self.is_deleted(),
            "category": self.category,
            "label": self.label,
            "last_used": self.last_used,
            "sensitive": self.sensitive,
            "icon": self.icon,
            # Intentionally omit: value, key material
        }
