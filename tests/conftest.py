"""
Shared pytest fixtures for the enpass-reader test suite.

Vault fixtures build a real SQLCipher database laid out like an Enpass
vault: a known salt in the file header, the `item` / `itemfield` tables,
and per-entry AES-256-GCM values bound to each entry's UUID.

The database key is computed here with hashlib so the fixtures don't depend
on the code under test.
"""

import hashlib
import json
import os
from dataclasses import dataclass, field
from typing import List, Optional

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

SALT = bytes.fromhex("000102030405060708090a0b0c0d0e0f")
PASSWORD = "correct horse battery staple"
ITERATIONS = 1000
KEYFILE_HEX = "9f2c4a7be10d55aa0317c3e8b2f46d01"


@dataclass
class FakeCard:
    """One item + one itemfield row to insert."""
    uuid: str
    title: str
    type: str
    value: str
    trashed: int = 0
    deleted: int = 0
    category: str = "login"
    label: str = "Password"
    sensitive: int = 1
    tombstone: bool = False
    item_key: bytes = field(default_factory=lambda: os.urandom(44))


def encrypt_value(plaintext: str, item_key: bytes, uuid: str) -> str:
    aad = bytes.fromhex(uuid.replace("-", ""))
    return AESGCM(item_key[:32]).encrypt(item_key[32:], plaintext.encode("utf-8"), aad).hex()


def default_cards() -> List[FakeCard]:
    return [
        FakeCard("a2ec30c0-aeed-41f7-aed7-cc50e69ff506", "GitHub", "password", "gh-secret"),
        FakeCard("0b7e9a52-3c1d-4f6e-8a2b-9c0d1e2f3a4b", "My Bank", "password", "bank-pass"),
        FakeCard("1c8fab63-4d2e-4a7f-9b3c-0d1e2f3a4b5c", "Bank of Mars", "username", "mars-user"),
        FakeCard("2d90bc74-5e3f-4b80-ac4d-1e2f3a4b5c6d", "Old Bank", "password", "old-pass", trashed=1),
        FakeCard("3ea1cd85-6f40-4c91-bd5e-2f3a4b5c6d7e", "Deleted Site", "password", "gone",
                 deleted=1, tombstone=True),
        FakeCard("4fb2de96-7051-4da2-ce6f-3a4b5c6d7e8f", "Email", "username", "me@example.com"),
    ]


def derive_test_key(password: str, keyfile: Optional[bytes] = None) -> bytes:
    secret = password.encode("utf-8") + (keyfile or b"")
    return hashlib.pbkdf2_hmac("sha512", secret, SALT, ITERATIONS, 64)


def write_vault_info(vault_dir, **overrides) -> None:
    info = {
        "encryption_algo": "aes-256-cbc",
        "have_keyfile": 0,
        "kdf_algo": "pbkdf2",
        "kdf_iter": ITERATIONS,
        "vault_items_count": 6,
        "vault_name": "Primary",
        "version": 6,
    }
    info.update(overrides)
    (vault_dir / "vault.json").write_text(json.dumps(info), encoding="utf-8")


def write_database(db_path, key: bytes, cards: List[FakeCard]) -> None:
    sqlcipher3 = pytest.importorskip("sqlcipher3")
    conn = sqlcipher3.dbapi2.connect(str(db_path))
    # raw key followed by an explicit salt, so the header carries SALT
    conn.execute(f"PRAGMA key = \"x'{key.hex()[:64]}{SALT.hex()}'\"")
    conn.execute("PRAGMA cipher_compatibility = 3")
    conn.execute("""
        CREATE TABLE item (
            ID INTEGER PRIMARY KEY,
            uuid TEXT NOT NULL,
            created_at INTEGER,
            meta_updated_at INTEGER,
            field_updated_at INTEGER,
            title TEXT,
            subtitle TEXT,
            note TEXT,
            icon TEXT,
            trashed INTEGER,
            deleted INTEGER,
            category TEXT,
            last_used INTEGER,
            key BLOB
        )
    """)
    conn.execute("""
        CREATE TABLE itemfield (
            ID INTEGER PRIMARY KEY,
            item_uuid TEXT NOT NULL,
            label TEXT,
            value TEXT,
            deleted INTEGER,
            sensitive INTEGER,
            type TEXT,
            updated_at INTEGER
        )
    """)
    for i, card in enumerate(cards):
        item_key = card.item_key[:32] if card.tombstone else card.item_key
        value = "" if card.tombstone else encrypt_value(card.value, card.item_key, card.uuid)
        conn.execute(
            "INSERT INTO item (uuid, created_at, meta_updated_at, field_updated_at, title, subtitle, "
            "note, icon, trashed, deleted, category, last_used, key) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (card.uuid, 1600000000 + i, 1600000000 + i, 1600000100 + i, card.title, "sub",
             "", "icon", card.trashed, card.deleted, card.category, 0, item_key),
        )
        conn.execute(
            "INSERT INTO itemfield (item_uuid, label, value, deleted, sensitive, type, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (card.uuid, card.label, value, 0, card.sensitive, card.type, 1600000100 + i),
        )
    conn.commit()
    conn.close()


@pytest.fixture
def make_vault(tmp_path):
    """Factory: make_vault(name, password=..., keyfile=None, cards=None, **info)."""

    def _make(name="vault", password=PASSWORD, keyfile: Optional[bytes] = None, cards=None, **info):
        vault_dir = tmp_path / name
        vault_dir.mkdir()
        cards = default_cards() if cards is None else cards
        write_database(vault_dir / "vault.enpassdb", derive_test_key(password, keyfile), cards)
        write_vault_info(vault_dir, have_keyfile=1 if keyfile else 0, **info)
        return vault_dir

    return _make


@pytest.fixture
def enpass_vault(make_vault):
    """A password-only vault holding default_cards()."""
    return make_vault()


@pytest.fixture
def keyfile_path(tmp_path):
    path = tmp_path / "vault.enpasskey"
    path.write_text(
        f'<?xml version="1.0" encoding="UTF-8"?><Key>{KEYFILE_HEX}</Key>',
        encoding="utf-8",
    )
    return path


@pytest.fixture
def keyfile_vault(make_vault):
    """A vault that needs PASSWORD plus the keyfile."""
    return make_vault("keyfile_vault", keyfile=bytes.fromhex(KEYFILE_HEX))


@pytest.fixture
def plain_vault_dir(tmp_path):
    """Vault directory with vault.json and a dummy (non-SQLCipher) database."""
    vault_dir = tmp_path / "plain"
    vault_dir.mkdir()
    (vault_dir / "vault.enpassdb").write_bytes(SALT + os.urandom(1008))
    write_vault_info(vault_dir)
    return vault_dir
