# Vault - Encryption Service
#
# Master password (+ keyfile) → database key (PBKDF2-HMAC-SHA512)
# Per-entry secrets (AES-256-GCM, entry UUID bound as AAD)
# Key material held in wipeable buffers

import logging
from pathlib import Path
from typing import Optional, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .exceptions import (
    AuthenticationFailedError,
    ConfigurationError,
    EntryDeletedError,
    MalformedDataError,
    VaultIOError,
    VaultNotFoundError,
)
from .keyfile import load_keyfile
from .vault_info import DB_ENCRYPTION_ALGO, KEY_DERIVATION_ALGO, VaultInfo, check_algorithms

logger = logging.getLogger(__name__)

PasswordLike = Union[str, bytes, bytearray, "SecretKey"]


class SecretKey:
    """
    Owned, wipeable buffer for key material.

    Use as a context manager so the bytes are zeroed on every exit path:

        with KeyDeriver.derive_key(password, salt, iterations) as key:
            store.open(key)

    Python may still hold short-lived immutable copies (e.g. inside the
    cryptography backend); the buffer owned here is the long-lived one.
    """

    def __init__(self, data: Union[bytes, bytearray]):
        self._buffer = bytearray(data)
        self._wiped = False

    def __enter__(self) -> "SecretKey":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()

    def __len__(self) -> int:
        return len(self._buffer)

    def __bytes__(self) -> bytes:
        self._check_alive()
        return bytes(self._buffer)

    def __repr__(self) -> str:
        state = "wiped" if self._wiped else f"{len(self._buffer)} bytes"
        return f"<SecretKey {state}>"

    @property
    def is_wiped(self) -> bool:
        return self._wiped

    def hex(self) -> str:
        self._check_alive()
        return self._buffer.hex()

    def wipe(self) -> None:
        """Zero the buffer. Safe to call more than once."""
        for i in range(len(self._buffer)):
            self._buffer[i] = 0
        self._wiped = True

    def _check_alive(self) -> None:
        if self._wiped:
            raise ValueError("secret key has been wiped")


def _as_bytes(value: PasswordLike) -> bytes:
    if isinstance(value, SecretKey):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


class KeyDeriver:
    """
    Derives the SQLCipher database key from the master password.

    Flow:
    1. Password bytes (+ keyfile bytes appended, if any)
    2. Salt = first 16 bytes of vault.enpassdb
    3. PBKDF2-HMAC-SHA512 with the iteration count from vault.json
    4. 64-byte key; the store only uses the first 32 bytes
    """

    SALT_LENGTH = 16
    MASTER_KEY_LENGTH = 64  # SHA-512 digest size

    @staticmethod
    def build_master_password(
        password: Optional[PasswordLike],
        keyfile_path: Optional[Union[str, Path]] = None,
    ) -> SecretKey:
        """
        Combine password and optional keyfile into the KDF input.

        Raises:
            ConfigurationError: No password supplied
            MalformedDataError / VaultIOError: Keyfile unusable
        """
        if password is None or len(password) == 0:
            raise ConfigurationError("empty master password provided")

        if not keyfile_path:
            logger.debug("not using keyfile")
            return SecretKey(_as_bytes(password))

        logger.debug("using keyfile")
        keyfile_bytes = load_keyfile(keyfile_path)
        return SecretKey(_as_bytes(password) + keyfile_bytes)

    @staticmethod
    def extract_salt(database_path: Union[str, Path]) -> bytes:
        """
        Read the KDF salt stored in the first bytes of the database file.

        Only SALT_LENGTH bytes are read and the file is opened read-only.

        Raises:
            VaultNotFoundError: Database file missing
            VaultIOError: Database file unreadable
            MalformedDataError: File shorter than the salt
        """
        path = Path(database_path)
        try:
            with open(path, "rb") as f:
                salt = f.read(KeyDeriver.SALT_LENGTH)
        except FileNotFoundError as e:
            raise VaultNotFoundError("vault does not exist", cause=e, path=str(path)) from e
        except OSError as e:
            raise VaultIOError("could not open database", cause=e, path=str(path)) from e

        if len(salt) != KeyDeriver.SALT_LENGTH:
            raise MalformedDataError(
                f"could not read database salt: expected {KeyDeriver.SALT_LENGTH} bytes, "
                f"got {len(salt)}",
                path=str(path),
            )
        return salt

    @staticmethod
    def derive_key(
        password: Optional[PasswordLike],
        salt: bytes,
        iterations: int,
        keyfile_path: Optional[Union[str, Path]] = None,
        kdf_algo: str = KEY_DERIVATION_ALGO,
        encryption_algo: str = DB_ENCRYPTION_ALGO,
    ) -> SecretKey:
        """
        Derive the 64-byte database key.

        Args:
            password: Master password (str is UTF-8 encoded)
            salt: Salt from extract_salt()
            iterations: kdf_iter from vault.json
            keyfile_path: Optional keyfile whose bytes follow the password
            kdf_algo: Declared KDF, must be "pbkdf2"
            encryption_algo: Declared page cipher, must be "aes-256-cbc"

        Returns:
            SecretKey holding the derived key

        Raises:
            AlgorithmMismatchError: Declared algorithms differ from ours
            ConfigurationError: Empty password or non-positive iterations
            MalformedDataError: Salt is not SALT_LENGTH bytes
        """
        # A changed vault format must never reach the KDF
        check_algorithms(kdf_algo, encryption_algo)

        if not isinstance(iterations, int) or isinstance(iterations, bool) or iterations <= 0:
            raise ConfigurationError(f"iteration count must be a positive integer, got {iterations!r}")

        if len(salt) != KeyDeriver.SALT_LENGTH:
            raise MalformedDataError(
                f"salt must be {KeyDeriver.SALT_LENGTH} bytes, got {len(salt)}"
            )

        with KeyDeriver.build_master_password(password, keyfile_path) as master_password:
            kdf = PBKDF2HMAC(
                algorithm=hashes.SHA512(),
                length=KeyDeriver.MASTER_KEY_LENGTH,
                salt=bytes(salt),
                iterations=iterations,
                backend=default_backend(),
            )
            return SecretKey(kdf.derive(bytes(master_password)))

    @staticmethod
    def derive_for_vault(
        info: VaultInfo,
        database_path: Union[str, Path],
        password: Optional[PasswordLike],
        keyfile_path: Optional[Union[str, Path]] = None,
    ) -> SecretKey:
        """Derive the key for a vault using its info record and salt."""
        info.check_algorithms()
        salt = KeyDeriver.extract_salt(database_path)
        return KeyDeriver.derive_key(
            password,
            salt,
            info.kdf_iter,
            keyfile_path=keyfile_path,
            kdf_algo=info.kdf_algo,
            encryption_algo=info.encryption_algo,
        )


class EntryDecryptor:
    """
    Decrypts a single entry value.

    The entry key column holds AES key (32 bytes) || GCM nonce (12 bytes).
    The value column holds hex(ciphertext || tag). The entry UUID without
    dashes, hex-decoded, is the AAD. Stateless.
    """

    KEY_LENGTH = 32
    NONCE_LENGTH = 12
    UUID_LENGTH = 16

    @staticmethod
    def split_key_material(key_material: bytes, entry_uuid: str = ""):
        """
        Split key||nonce.

        Raises:
            EntryDeletedError: No nonce present (tombstoned entry)
            MalformedDataError: Key or nonce of the wrong size
        """
        key_material = bytes(key_material or b"")
        key = key_material[:EntryDecryptor.KEY_LENGTH]
        nonce = key_material[EntryDecryptor.KEY_LENGTH:]

        # Deleted items stay in the database with their key material cleared
        if len(nonce) == 0:
            raise EntryDeletedError("this item has been deleted", entry_uuid=entry_uuid or None)

        if len(key) != EntryDecryptor.KEY_LENGTH or len(nonce) != EntryDecryptor.NONCE_LENGTH:
            raise MalformedDataError(
                f"invalid entry key material length {len(key_material)}",
                entry_uuid=entry_uuid or None,
            )
        return key, nonce

    @staticmethod
    def associated_data(entry_uuid: str) -> bytes:
        """UUID without dashes, hex-decoded (16 bytes)."""
        try:
            aad = bytes.fromhex(entry_uuid.replace("-", ""))
        except (ValueError, AttributeError) as e:
            raise MalformedDataError(
                "could not decode entry AAD", cause=e, entry_uuid=str(entry_uuid)
            ) from e
        if len(aad) != EntryDecryptor.UUID_LENGTH:
            raise MalformedDataError(
                f"entry uuid must decode to {EntryDecryptor.UUID_LENGTH} bytes, got {len(aad)}",
                entry_uuid=entry_uuid,
            )
        return aad

    @staticmethod
    def decrypt(key_material: bytes, value_hex: str, entry_uuid: str) -> bytes:
        """
        Authenticated decryption of an entry value.

        Returns:
            Plaintext bytes

        Raises:
            EntryDeletedError: Tombstoned entry
            MalformedDataError: Bad hex, bad key material or bad uuid
            AuthenticationFailedError: Tag check failed (tampering, wrong key, wrong AAD)
        """
        key, nonce = EntryDecryptor.split_key_material(key_material, entry_uuid)

        try:
            ciphertext_and_tag = bytes.fromhex(value_hex or "")
        except (ValueError, TypeError) as e:
            raise MalformedDataError(
                "could not decode card hex cipherstring", cause=e, entry_uuid=entry_uuid
            ) from e

        aad = EntryDecryptor.associated_data(entry_uuid)

        try:
            return AESGCM(key).decrypt(nonce, ciphertext_and_tag, aad)
        except InvalidTag as e:
            raise AuthenticationFailedError(
                "could not decrypt data", cause=e, entry_uuid=entry_uuid
            ) from e

    @staticmethod
    def encrypt(plaintext: bytes, key_material: bytes, entry_uuid: str) -> str:
        """Inverse of decrypt(): returns hex(ciphertext || tag)."""
        key, nonce = EntryDecryptor.split_key_material(key_material, entry_uuid)
        aad = EntryDecryptor.associated_data(entry_uuid)
        return AESGCM(key).encrypt(nonce, plaintext, aad).hex()
