# Wallet Vault - Configuration
#
# Settings are read from the environment (optionally seeded from a .env
# file). Nothing here is secret: the vault never holds long-term keys.

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "WALLET_VAULT_"

DEFAULT_LINK_ORIGIN = "http://127.0.0.1:8000"
DEFAULT_STORE_PATH = "data/vault_store.db"
DEFAULT_AUDIT_DIR = "./audit_logs"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000


@dataclass(frozen=True)
class VaultSettings:
    """Runtime settings for the vault tooling."""
    link_origin: str = DEFAULT_LINK_ORIGIN
    store_path: Path = Path(DEFAULT_STORE_PATH)
    audit_dir: Path = Path(DEFAULT_AUDIT_DIR)
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "VaultSettings":
        """Build settings from ``WALLET_VAULT_*`` environment variables."""
        if load_env_file:
            load_dotenv(Path.cwd() / ".env", override=False)

        port_raw = os.getenv(f"{ENV_PREFIX}PORT", str(DEFAULT_PORT))
        try:
            port = int(port_raw)
        except ValueError:
            raise ValueError(f"{ENV_PREFIX}PORT must be an integer, got {port_raw!r}")

        return cls(
            link_origin=os.getenv(f"{ENV_PREFIX}LINK_ORIGIN", DEFAULT_LINK_ORIGIN).rstrip("/"),
            store_path=Path(os.getenv(f"{ENV_PREFIX}STORE_PATH", DEFAULT_STORE_PATH)),
            audit_dir=Path(os.getenv(f"{ENV_PREFIX}AUDIT_DIR", DEFAULT_AUDIT_DIR)),
            host=os.getenv(f"{ENV_PREFIX}HOST", DEFAULT_HOST),
            port=port,
        )


# ── Singleton ────────────────────────────────────────────────────────

_settings: Optional[VaultSettings] = None


def get_settings() -> VaultSettings:
    """Get or create the process-wide settings."""
    global _settings
    if _settings is None:
        _settings = VaultSettings.from_env()
    return _settings


def set_settings(settings: Optional[VaultSettings]) -> None:
    """Replace the singleton (for testing)."""
    global _settings
    _settings = settings
