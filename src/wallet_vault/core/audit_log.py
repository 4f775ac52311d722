# Wallet Vault - Audit Logging
#
# Append-only trail of vault outcomes: one JSON object per line in
# <audit_dir>/vault_audit_<date>.jsonl. Records name the account, the
# operation and the error kind. Key material, payloads and links never
# go into a record.

import logging
import os
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

import structlog

AUDIT_LOGGER_NAME = "wallet_vault.audit"


class EventType(str, Enum):
    """Kinds of vault events."""
    # Envelope operations
    VAULT_ENCRYPTED = "vault.encrypted"
    VAULT_DECRYPTED = "vault.decrypted"
    VAULT_DECRYPT_FAILED = "vault.decrypt.failed"
    VAULT_IDENTITY_MISMATCH = "vault.identity.mismatch"
    VAULT_ACCESS_DENIED = "vault.access.denied"

    # Shareable links
    VAULT_LINK_CREATED = "vault.link.created"
    VAULT_LINK_REJECTED = "vault.link.rejected"

    # Account vault storage
    VAULT_STORED = "vault.stored"
    VAULT_CLEARED = "vault.cleared"

    # Process lifecycle
    SYSTEM_START = "system.start"
    SYSTEM_STOP = "system.stop"


class EventSeverity(str, Enum):
    """
    How much attention an event deserves.

    - INFO: normal activity
    - INVESTIGATE: wrong wallet, declined prompt, pasted garbage
    - ALERT: tampered or corrupted vault
    - CRITICAL: the process itself failed
    """
    INFO = "info"
    INVESTIGATE = "investigate"
    ALERT = "alert"
    CRITICAL = "critical"


_LOUD = frozenset({EventSeverity.ALERT, EventSeverity.CRITICAL})


def _configure_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Structured (structlog) audit writer for vault events.

    Args:
        log_dir: Directory for the daily ``.jsonl`` files (default: the
            configured ``WALLET_VAULT_AUDIT_DIR``)
    """

    def __init__(self, log_dir: Optional[Path] = None):
        if log_dir is None:
            from .config import get_settings
            log_dir = get_settings().audit_dir

        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = self.log_dir / f"vault_audit_{date.today().isoformat()}.jsonl"

        _configure_structlog()
        self._attach_file_handler()
        self.logger = structlog.get_logger(AUDIT_LOGGER_NAME).bind(pid=os.getpid())

    def _attach_file_handler(self):
        handler = logging.FileHandler(self.log_file, mode="a", encoding="utf-8")
        handler.setLevel(logging.INFO)
        # structlog has already rendered the JSON line
        handler.setFormatter(logging.Formatter("%(message)s"))

        stdlib_logger = logging.getLogger(AUDIT_LOGGER_NAME)
        # Only the newest logger's file receives records
        for existing in list(stdlib_logger.handlers):
            if isinstance(existing, logging.FileHandler):
                stdlib_logger.removeHandler(existing)
                existing.close()
        stdlib_logger.setLevel(logging.INFO)
        stdlib_logger.addHandler(handler)

    def log_event(
        self,
        event_type: EventType,
        severity: EventSeverity,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Append one record.

        Args:
            event_type: What happened
            severity: How much attention it deserves
            message: Short human-readable summary
            details: Accounts, counts and error kinds only

        Returns:
            Hex event id, for correlating with user-facing errors
        """
        event_id = uuid4().hex
        emit = self.logger.warning if severity in _LOUD else self.logger.info
        emit(
            event_type.value,
            event_id=event_id,
            severity=severity.value,
            message=message,
            details=dict(details or {}),
        )
        return event_id

    def log_vault_event(
        self,
        event_type: EventType,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: EventSeverity = EventSeverity.INFO,
    ) -> str:
        return self.log_event(event_type, severity, f"Vault: {message}", details)


_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Process-wide audit logger, created on first use."""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger()
    return _audit_logger


def log_security_event(
    event_type: EventType,
    severity: EventSeverity,
    message: str,
    **kwargs
) -> str:
    """Shortcut for ``get_audit_logger().log_event(...)``."""
    return get_audit_logger().log_event(event_type, severity, message, **kwargs)
