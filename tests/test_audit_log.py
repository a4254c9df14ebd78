# Tests for structured audit logging

import json
import logging

from enpass_reader.core import AuditLogger, EventSeverity, EventType
from enpass_reader.vault import Vault, VaultCredentials

from conftest import PASSWORD


def test_log_event_returns_id(caplog):
    audit = AuditLogger(level=logging.DEBUG)
    with caplog.at_level(logging.DEBUG, logger=AuditLogger.LOGGER_NAME):
        event_id = audit.log_vault_event(EventType.VAULT_OPENED, "vault opened", details={"vault_name": "x"})
    assert len(event_id) == 36
    assert event_id in caplog.text
    assert "vault.opened" in caplog.text


def test_level_filtering(caplog):
    audit = AuditLogger(level="ERROR")
    with caplog.at_level(logging.DEBUG):
        audit.log_vault_event(EventType.VAULT_CLOSED, "vault closed")
    assert "vault.closed" not in caplog.text


def test_daily_file(tmp_path):
    log_dir = tmp_path / "audit"
    audit = AuditLogger(log_dir=log_dir, level=logging.DEBUG)
    audit.log_event(EventType.VAULT_ERROR, EventSeverity.CRITICAL, "broken", details={"path": "/x"})
    audit.close()

    files = list(log_dir.glob("audit_*.log"))
    assert len(files) == 1
    record = json.loads(files[0].read_text(encoding="utf-8").strip().splitlines()[-1])
    assert record["event_type"] == "vault.error"
    assert record["severity"] == "critical"
    assert record["details"] == {"path": "/x"}


def test_vault_never_logs_password(enpass_vault, caplog):
    audit = AuditLogger(level=logging.DEBUG)
    with caplog.at_level(logging.DEBUG):
        with Vault(enpass_vault, logger=audit) as vault:
            vault.open(VaultCredentials(password=PASSWORD))
            vault.get_entry("password", ["github"]).decrypt()

    assert "vault.opened" in caplog.text
    assert "vault.entry.accessed" in caplog.text
    assert PASSWORD not in caplog.text
    assert "gh-secret" not in caplog.text


def test_default_vault_logger_does_not_mute_others(plain_vault_dir, caplog):
    verbose = AuditLogger(level=logging.DEBUG)
    Vault(plain_vault_dir)  # creates its own ERROR-level logger
    with caplog.at_level(logging.DEBUG):
        verbose.log_vault_event(EventType.VAULT_OPENED, "vault opened")
    assert "vault.opened" in caplog.text


def test_loggers_keep_separate_files(tmp_path):
    first = AuditLogger(log_dir=tmp_path / "first", level=logging.DEBUG)
    second = AuditLogger(log_dir=tmp_path / "second", level=logging.DEBUG)
    first.log_vault_event(EventType.VAULT_CLOSED, "only-for-first")
    first.close()
    second.close()

    first_text = next((tmp_path / "first").glob("audit_*.log")).read_text(encoding="utf-8")
    second_files = list((tmp_path / "second").glob("audit_*.log"))
    assert "only-for-first" in first_text
    assert all("only-for-first" not in f.read_text(encoding="utf-8") for f in second_files)


def test_each_logger_has_its_own_name():
    assert AuditLogger().logger_name != AuditLogger().logger_name
