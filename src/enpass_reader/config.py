# Configuration - Reader Settings
#
# Settings come from the environment, optionally seeded from a .env file:
#   ENPASS_VAULT_PATH   vault directory (vault.enpassdb + vault.json)
#   ENPASS_PASSWORD     master password
#   ENPASS_KEYFILE      keyfile path (only for vaults created with one)
#   ENPASS_LOG_LEVEL    audit log level (default ERROR)
#   ENPASS_LOG_DIR      directory for daily audit files (optional)

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Union

from dotenv import load_dotenv

from .vault.vault_manager import VaultCredentials

DEFAULT_LOG_LEVEL = "ERROR"


@dataclass
class ReaderSettings:
    vault_path: str = ""
    password: Optional[str] = None
    keyfile_path: Optional[str] = None
    log_level: str = DEFAULT_LOG_LEVEL
    log_dir: Optional[Path] = None

    def to_credentials(self) -> VaultCredentials:
        return VaultCredentials(password=self.password, keyfile_path=self.keyfile_path)

    def __repr__(self) -> str:
        return (
            f"ReaderSettings(vault_path={self.vault_path!r}, "
            f"password={'***' if self.password else None}, "
            f"keyfile_path={self.keyfile_path!r}, log_level={self.log_level!r}, "
            f"log_dir={self.log_dir!r})"
        )


def load_settings(
    env_file: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ReaderSettings:
    """
    Build settings from the environment.

    Args:
        env_file: .env file to load first (variables already set win)
        environ: Mapping to read instead of os.environ
    """
    if environ is None:
        load_dotenv(dotenv_path=env_file, override=False)
        environ = os.environ

    log_dir = environ.get("ENPASS_LOG_DIR", "")
    return ReaderSettings(
        vault_path=environ.get("ENPASS_VAULT_PATH", ""),
        password=environ.get("ENPASS_PASSWORD") or None,
        keyfile_path=environ.get("ENPASS_KEYFILE") or None,
        log_level=(environ.get("ENPASS_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
        log_dir=Path(log_dir) if log_dir else None,
    )
