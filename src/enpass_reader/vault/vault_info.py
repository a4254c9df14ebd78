# Vault - Vault Info Reader
#
# vault.json sits next to vault.enpassdb and dictates how the database key
# is derived: KDF name, iteration count and page cipher. It is read once
# per vault and never written.

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Union

from .exceptions import AlgorithmMismatchError, MalformedDataError, VaultIOError, VaultNotFoundError

logger = logging.getLogger(__name__)

VAULT_INFO_FILENAME = "vault.json"

# Algorithms this reader implements
KEY_DERIVATION_ALGO = "pbkdf2"
DB_ENCRYPTION_ALGO = "aes-256-cbc"


def check_algorithms(kdf_algo: str, encryption_algo: str) -> None:
    """
    Raises:
        AlgorithmMismatchError: kdf_algo or encryption_algo differs from ours
    """
    if kdf_algo != KEY_DERIVATION_ALGO:
        raise AlgorithmMismatchError(
            f"key derivation algo has changed: expected {KEY_DERIVATION_ALGO!r}, "
            f"vault declares {kdf_algo!r}"
        )
    if encryption_algo != DB_ENCRYPTION_ALGO:
        raise AlgorithmMismatchError(
            f"database encryption algo has changed: expected {DB_ENCRYPTION_ALGO!r}, "
            f"vault declares {encryption_algo!r}"
        )


@dataclass(frozen=True)
class VaultInfo:
    """Vault metadata loaded from vault.json."""
    encryption_algo: str
    kdf_algo: str
    kdf_iter: int
    vault_items_count: int
    vault_name: str
    version: int
    have_keyfile: bool = False

    def check_algorithms(self) -> None:
        """Refuse to continue when the vault uses algorithms we don't implement."""
        check_algorithms(self.kdf_algo, self.encryption_algo)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VaultInfo":
        """
        Build a VaultInfo from parsed JSON.

        Raises:
            MalformedDataError: missing field, wrong type or bad iteration count
        """
        if not isinstance(data, dict):
            raise MalformedDataError("vault info must be a JSON object")

        def field(name: str, kind: type) -> Any:
            if name not in data:
                raise MalformedDataError(f"vault info is missing field {name!r}")
            value = data[name]
            # bool is an int subclass; reject it for numeric fields
            if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
                raise MalformedDataError(
                    f"vault info field {name!r} must be {kind.__name__}, got {type(value).__name__}"
                )
            return value

        kdf_iter = field("kdf_iter", int)
        if kdf_iter <= 0:
            raise MalformedDataError(f"vault info kdf_iter must be positive, got {kdf_iter}")

        have_keyfile = data.get("have_keyfile", 0)
        if not isinstance(have_keyfile, (int, bool)):
            raise MalformedDataError("vault info field 'have_keyfile' must be 0 or 1")

        return cls(
            encryption_algo=field("encryption_algo", str),
            kdf_algo=field("kdf_algo", str),
            kdf_iter=kdf_iter,
            vault_items_count=field("vault_items_count", int),
            vault_name=field("vault_name", str),
            version=field("version", int),
            have_keyfile=bool(have_keyfile),
        )


def load_vault_info(path: Union[str, Path]) -> VaultInfo:
    """
    Load vault.json from a vault directory (or the file itself).

    Args:
        path: Vault directory, or direct path to vault.json

    Returns:
        Parsed VaultInfo

    Raises:
        VaultNotFoundError: File does not exist
        VaultIOError: File exists but cannot be read
        MalformedDataError: Content is not the expected JSON shape
    """
    info_path = Path(path)
    if info_path.is_dir():
        info_path = info_path / VAULT_INFO_FILENAME

    if not info_path.exists():
        raise VaultNotFoundError("vault info file does not exist", path=str(info_path))

    try:
        raw = info_path.read_text(encoding="utf-8")
    except OSError as e:
        raise VaultIOError("could not read vault info", cause=e, path=str(info_path)) from e

    try:
        data = json.loads(raw)
    except ValueError as e:
        raise MalformedDataError("could not parse vault info", cause=e, path=str(info_path)) from e

    try:
        info = VaultInfo.from_dict(data)
    except MalformedDataError as e:
        e.path = str(info_path)
        raise

    logger.debug("vault info loaded: name=%s version=%s", info.vault_name, info.version)
    return info
