# Core - Audit Logging
#
# Structured (JSON) logging of vault events: info loaded, unlock, entry
# access, close. Loggers are created by the caller and handed to each Vault;
# there is no process-wide logger instance.
#
# Never log passwords, keys or decrypted values.

import itertools
import logging
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union
from uuid import uuid4

import structlog

_logger_ids = itertools.count(1)


class EventType(str, Enum):
    """Types of vault events that can be logged."""
    VAULT_INFO_LOADED = "vault.info.loaded"
    VAULT_OPENED = "vault.opened"
    VAULT_UNLOCK_FAILED = "vault.unlock.failed"
    VAULT_CLOSED = "vault.closed"
    VAULT_ENTRY_ACCESSED = "vault.entry.accessed"
    VAULT_ERROR = "vault.error"
    KEY_DERIVED = "vault.key.derived"


class EventSeverity(str, Enum):
    """
    Severity levels for vault events.

    - INFO: Normal activity
    - ALERT: Failed unlock (wrong password or keyfile)
    - CRITICAL: Unusable vault (algorithm change, corrupt files)
    """
    INFO = "info"
    ALERT = "alert"
    CRITICAL = "critical"

    def to_log_level(self) -> int:
        return {
            EventSeverity.INFO: logging.DEBUG,
            EventSeverity.ALERT: logging.WARNING,
            EventSeverity.CRITICAL: logging.ERROR,
        }[self]


def configure_structlog() -> None:
    """Route structlog through stdlib logging with JSON output."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Structured logger for vault events.

    Each instance writes through its own child of LOGGER_NAME, so its level
    and file handler never affect another instance.

    Features:
    - JSON events via structlog
    - Event ID per event
    - Optional daily log file
    - Level filtering (default: errors only, like a library should be)
    """

    LOGGER_NAME = "enpass_reader.audit"

    def __init__(
        self,
        log_dir: Optional[Path] = None,
        level: Union[int, str] = logging.ERROR,
    ):
        """
        Args:
            log_dir: Directory for daily audit files (None = no file output)
            level: Minimum stdlib level for audit events
        """
        configure_structlog()

        self.log_dir = Path(log_dir) if log_dir else None
        self.logger_name = f"{self.LOGGER_NAME}.{next(_logger_ids)}"
        self._stdlib_logger = logging.getLogger(self.logger_name)
        self._stdlib_logger.setLevel(level if isinstance(level, int) else level.upper())
        self._file_handler: Optional[logging.FileHandler] = None

        if self.log_dir is not None:
            self._setup_file_handler()

        self.logger = structlog.get_logger(self.logger_name)

    def _setup_file_handler(self):
        """Add a file handler writing to audit_<date>.log."""
        self.log_dir.mkdir(parents=True, exist_ok=True)
        today = datetime.now().strftime("%Y-%m-%d")
        log_file = self.log_dir / f"audit_{today}.log"

        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        formatter = logging.Formatter('%(message)s')  # structlog handles formatting
        file_handler.setFormatter(formatter)
        self._stdlib_logger.addHandler(file_handler)
        self._file_handler = file_handler

    def close(self) -> None:
        """Detach and close the file handler added by this logger, if any."""
        if self._file_handler is not None:
            self._stdlib_logger.removeHandler(self._file_handler)
            self._file_handler.close()
            self._file_handler = None

    def log_event(
        self,
        event_type: EventType,
        severity: EventSeverity,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Log a vault event.

        Args:
            event_type: Type of event (from EventType enum)
            severity: Severity level (from EventSeverity enum)
            message: Human-readable event description
            details: Additional event details (never secrets!)

        Returns:
            str: Event ID (UUID) for reference
        """
        event_id = str(uuid4())

        self.logger.log(
            severity.to_log_level(),
            "vault_event",
            event_id=event_id,
            event_type=event_type.value,
            severity=severity.value,
            message=message,
            details=details or {},
        )

        return event_id

    def log_vault_event(
        self,
        event_type: EventType,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ) -> str:
        """Log a routine (INFO) vault event."""
        return self.log_event(
            event_type=event_type,
            severity=EventSeverity.INFO,
            message=f"Vault: {message}",
            details=details
        )
