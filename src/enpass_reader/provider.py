# Provider - Enpass Secret Provider
#
# Secret-manager style facade over a Vault:
#   get(path, env)     → one secret (card type = path, title contains env)
#   get_mapping(path)  → every live card of type `path`, keyed "<uuid>/<title>"
# Read-only: writes and deletes are refused.

from dataclasses import dataclass
from typing import Dict, List, Optional

from .config import ReaderSettings, load_settings
from .core import AuditLogger
from .vault import ConfigurationError, Vault


@dataclass
class EnvEntry:
    """A resolved secret."""
    key: str
    value: str
    path: str
    provider: str = "enpass"


class EnpassProvider:
    """Resolves secrets from an opened Enpass vault."""

    name = "enpass"

    def __init__(self, vault: Vault):
        self.vault = vault

    @classmethod
    def from_settings(cls, settings: Optional[ReaderSettings] = None) -> "EnpassProvider":
        """
        Open the vault described by settings (default: environment).

        Raises:
            VaultError: Vault missing, bad credentials, ...
        """
        settings = settings or load_settings()
        audit = AuditLogger(log_dir=settings.log_dir, level=settings.log_level)
        vault = Vault(settings.vault_path, logger=audit)
        try:
            vault.open(settings.to_credentials())
        except Exception:
            vault.close()
            raise
        return cls(vault)

    def close(self) -> None:
        self.vault.close()

    def __enter__(self) -> "EnpassProvider":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def get(self, path: str, env: str) -> EnvEntry:
        """Decrypt the single live card of type `path` whose title contains `env`."""
        card = self.vault.get_entry(path, [env], unique=True)
        return EnvEntry(key=env, value=card.decrypt(), path=path, provider=self.name)

    def get_mapping(self, path: str) -> List[EnvEntry]:
        """Decrypt every live card of type `path`, sorted by key."""
        values: Dict[str, str] = {}
        for card in self.vault.get_entries(path, []):
            if card.is_trashed() or card.is_deleted():
                continue
            values[f"{card.uuid}/{card.title}"] = card.decrypt()

        return [
            EnvEntry(key=key, value=values[key], path=path, provider=self.name)
            for key in sorted(values)
        ]

    def put(self, path: str, value: str) -> None:
        raise ConfigurationError(f"provider {self.name!r} does not implement write yet")

    def put_mapping(self, path: str, mapping: Dict[str, str]) -> None:
        raise ConfigurationError(f"provider {self.name!r} does not implement write yet")

    def delete(self, path: str) -> None:
        raise ConfigurationError(f"provider {self.name!r} does not implement delete yet")

    def delete_mapping(self, path: str) -> None:
        raise ConfigurationError(f"provider {self.name!r} does not implement delete yet")
