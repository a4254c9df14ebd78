# Core Module - Shared Utilities
#
# Audit logging shared by the vault and provider layers.

from .audit_log import (
    AuditLogger,
    EventSeverity,
    EventType,
    configure_structlog,
)

__all__ = [
    "AuditLogger",
    "EventType",
    "EventSeverity",
    "configure_structlog",
]
