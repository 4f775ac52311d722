# Wallet Vault - Main Package
#
# Wallet-bound envelope encryption for API private keys.
# Only the wallet account a vault was sealed for can ever open it; nothing
# leaves the client except the sealed container itself.

__version__ = "1.0.0"
__author__ = "Wallet Vault Team"
__description__ = "Wallet-bound envelope encryption for API keys"

from .core import (
    EventType,
    EventSeverity,
    get_audit_logger,
    get_settings,
)

__all__ = [
    "__version__",
    "EventType",
    "EventSeverity",
    "get_audit_logger",
    "get_settings",
]
