# Wallet Vault - Container storage
#
# The envelope service never decides persistence. Callers that want to keep
# a container around hand it to a VaultStore: a plain key/value collaborator
# (get/set/remove of bytes). Two stores ship here:
#   - MemoryVaultStore: dict-backed, for tests and one-shot tools
#   - SQLiteVaultStore: local file (WAL mode), the desktop analogue of the
#     browser's localStorage
#
# AccountVault ties a store to the envelope service, keyed per network and
# account, mirroring "save to vault / restore from vault / clear".

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, Optional, Protocol, Union

from ..core import EventType, get_audit_logger, get_settings
from .container import EncryptedContainer
from .envelope import EnvelopeVaultService
from .exceptions import IntegrityFailure, InvalidLinkFormat
from .models import Network, VaultPayload
from .providers import AsymmetricKeyProvider

logger = logging.getLogger(__name__)

STORAGE_KEY_PREFIX = "tier_vault"


def storage_key(network: Union[Network, str], account: str) -> str:
    """Key under which an account's container is stored."""
    return f"{STORAGE_KEY_PREFIX}_{Network(network).value}_{account.lower()}"


class VaultStore(Protocol):
    """Key/value persistence collaborator."""

    def get(self, key: str) -> Optional[bytes]:
        ...

    def set(self, key: str, value: bytes) -> None:
        ...

    def remove(self, key: str) -> bool:
        ...


class MemoryVaultStore:
    """Dict-backed store (thread-safe)."""

    def __init__(self):
        self._data: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            self._data[key] = bytes(value)

    def remove(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class SQLiteVaultStore:
    """SQLite key/value store for serialized containers.

    Args:
        db_path: Path to SQLite file. Defaults to the configured store path.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        self.db_path = Path(db_path) if db_path else get_settings().store_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """WAL-mode connection; commits on success, always closed."""
        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA busy_timeout=5000")
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_database(self):
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS vault_entries (
                    key TEXT PRIMARY KEY,
                    value BLOB NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

    def get(self, key: str) -> Optional[bytes]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM vault_entries WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            return None
        return bytes(row[0])

    def set(self, key: str, value: bytes) -> None:
        """Insert or overwrite."""
        now = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute(
                """INSERT INTO vault_entries (key, value, updated_at)
                   VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET
                       value = excluded.value,
                       updated_at = excluded.updated_at""",
                (key, sqlite3.Binary(value), now),
            )

    def remove(self, key: str) -> bool:
        """Delete an entry. Returns True if the key existed."""
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM vault_entries WHERE key = ?", (key,))
            return cur.rowcount > 0


class AccountVault:
    """Save/restore one account's keys through a VaultStore.

    Each save is a fresh encryption producing a new container that replaces
    the previous one; containers are never edited in place.
    """

    def __init__(
        self,
        store: VaultStore,
        service: Optional[EnvelopeVaultService] = None,
    ):
        self.store = store
        self.service = service or EnvelopeVaultService()

    def has_stored(self, account: str, network: Union[Network, str]) -> bool:
        return self.store.get(storage_key(network, account)) is not None

    def load_container(
        self, account: str, network: Union[Network, str],
    ) -> Optional[EncryptedContainer]:
        """Stored container, None if nothing is stored.

        Raises:
            IntegrityFailure: the stored entry is not a readable container
        """
        raw = self.store.get(storage_key(network, account))
        if raw is None:
            return None
        try:
            return EncryptedContainer.from_json(raw)
        except InvalidLinkFormat as e:
            raise IntegrityFailure(f"stored vault entry is corrupted: {e}") from e

    async def save(
        self,
        payload: VaultPayload,
        account: str,
        network: Union[Network, str],
        provider: AsymmetricKeyProvider,
    ) -> EncryptedContainer:
        container = await self.service.encrypt(payload, account, provider)
        key = storage_key(network, account)
        self.store.set(key, container.to_json(indent=None).encode("utf-8"))

        get_audit_logger().log_vault_event(
            EventType.VAULT_STORED,
            "Vault saved to local store",
            details={"account": container.recipient, "network": Network(network).value},
        )
        return container

    async def restore(
        self,
        account: str,
        network: Union[Network, str],
        provider: AsymmetricKeyProvider,
    ) -> Optional[VaultPayload]:
        """Decrypted payload, or None when nothing is stored for the account."""
        container = self.load_container(account, network)
        if container is None:
            logger.debug("No stored vault for %s on %s", account.lower(), network)
            return None
        return await self.service.decrypt(container, account, provider)

    def clear(self, account: str, network: Union[Network, str]) -> bool:
        removed = self.store.remove(storage_key(network, account))
        if removed:
            get_audit_logger().log_vault_event(
                EventType.VAULT_CLEARED,
                "Vault removed from local store",
                details={"account": account.lower(), "network": Network(network).value},
            )
        return removed
