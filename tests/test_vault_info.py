# Tests for vault.json loading
#
# Coverage:
#   - Loading from a directory or the file itself
#   - Missing file, bad JSON, missing/wrong-typed fields
#   - Algorithm checks

import json

import pytest

from enpass_reader.vault import (
    AlgorithmMismatchError,
    ErrorKind,
    MalformedDataError,
    VaultInfo,
    VaultNotFoundError,
    load_vault_info,
)

from conftest import write_vault_info


class TestLoadVaultInfo:
    def test_load_from_directory(self, tmp_path):
        write_vault_info(tmp_path)
        info = load_vault_info(tmp_path)
        assert info == VaultInfo(
            encryption_algo="aes-256-cbc",
            kdf_algo="pbkdf2",
            kdf_iter=1000,
            vault_items_count=6,
            vault_name="Primary",
            version=6,
            have_keyfile=False,
        )

    def test_load_from_file(self, tmp_path):
        write_vault_info(tmp_path, have_keyfile=1)
        info = load_vault_info(tmp_path / "vault.json")
        assert info.have_keyfile is True

    def test_have_keyfile_defaults_to_false(self, tmp_path):
        write_vault_info(tmp_path)
        data = json.loads((tmp_path / "vault.json").read_text())
        del data["have_keyfile"]
        (tmp_path / "vault.json").write_text(json.dumps(data))
        assert load_vault_info(tmp_path).have_keyfile is False

    def test_missing_file(self, tmp_path):
        with pytest.raises(VaultNotFoundError) as exc_info:
            load_vault_info(tmp_path)
        assert exc_info.value.kind == ErrorKind.IO_ERROR
        assert exc_info.value.path.endswith("vault.json")

    def test_invalid_json(self, tmp_path):
        (tmp_path / "vault.json").write_text("{not json")
        with pytest.raises(MalformedDataError, match="could not parse vault info"):
            load_vault_info(tmp_path)

    def test_not_an_object(self, tmp_path):
        (tmp_path / "vault.json").write_text("[1, 2]")
        with pytest.raises(MalformedDataError):
            load_vault_info(tmp_path)

    def test_missing_field(self, tmp_path):
        write_vault_info(tmp_path)
        data = json.loads((tmp_path / "vault.json").read_text())
        del data["kdf_iter"]
        (tmp_path / "vault.json").write_text(json.dumps(data))
        with pytest.raises(MalformedDataError, match="kdf_iter") as exc_info:
            load_vault_info(tmp_path)
        assert exc_info.value.path is not None

    @pytest.mark.parametrize("value", ["100000", 1.5, True])
    def test_wrong_type_iterations(self, tmp_path, value):
        write_vault_info(tmp_path, kdf_iter=value)
        with pytest.raises(MalformedDataError):
            load_vault_info(tmp_path)

    def test_non_positive_iterations(self, tmp_path):
        write_vault_info(tmp_path, kdf_iter=0)
        with pytest.raises(MalformedDataError, match="positive"):
            load_vault_info(tmp_path)


class TestCheckAlgorithms:
    def test_supported(self, tmp_path):
        write_vault_info(tmp_path)
        load_vault_info(tmp_path).check_algorithms()

    def test_kdf_changed(self, tmp_path):
        write_vault_info(tmp_path, kdf_algo="argon2id")
        info = load_vault_info(tmp_path)
        with pytest.raises(AlgorithmMismatchError, match="key derivation"):
            info.check_algorithms()

    def test_cipher_changed(self, tmp_path):
        write_vault_info(tmp_path, encryption_algo="chacha20")
        info = load_vault_info(tmp_path)
        with pytest.raises(AlgorithmMismatchError, match="database encryption"):
            info.check_algorithms()
