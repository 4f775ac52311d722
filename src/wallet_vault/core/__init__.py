# Core Module - Shared Utilities
#
# Core module provides shared functionality across all Wallet Vault modules:
# - Audit logging
# - Configuration

from .audit_log import (
    AuditLogger,
    EventSeverity,
    EventType,
    get_audit_logger,
    log_security_event,
)
from .config import VaultSettings, get_settings, set_settings

__all__ = [
    # Audit Logging
    "AuditLogger",
    "EventType",
    "EventSeverity",
    "get_audit_logger",
    "log_security_event",
    # Configuration
    "VaultSettings",
    "get_settings",
    "set_settings",
]
