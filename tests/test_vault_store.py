# Tests for container storage
#
# Coverage:
#   - storage_key naming per network/account
#   - MemoryVaultStore and SQLiteVaultStore get/set/remove
#   - AccountVault save/restore/clear through the envelope service

import pytest

from wallet_vault.core import get_audit_logger
from wallet_vault.vault import (
    AccountVault,
    EnvelopeVaultService,
    IdentityMismatch,
    IntegrityFailure,
    MemoryVaultStore,
    Network,
    SQLiteVaultStore,
    storage_key,
)

ALICE = "0x1111111111111111111111111111111111111111"
BOB = "0x2222222222222222222222222222222222222222"


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryVaultStore()
    return SQLiteVaultStore(tmp_path / "vault_store.db")


class TestStorageKey:
    def test_format(self):
        assert storage_key(Network.TESTNET, "0xABC") == "tier_vault_testnet_0xabc"
        assert storage_key("mainnet", ALICE) == f"tier_vault_mainnet_{ALICE}"

    def test_unknown_network(self):
        with pytest.raises(ValueError):
            storage_key("devnet", ALICE)


class TestStores:
    def test_get_missing(self, store):
        assert store.get("absent") is None

    def test_set_get(self, store):
        store.set("k", b"value")
        assert store.get("k") == b"value"

    def test_overwrite(self, store):
        store.set("k", b"one")
        store.set("k", b"two")
        assert store.get("k") == b"two"

    def test_remove(self, store):
        store.set("k", b"value")
        assert store.remove("k") is True
        assert store.get("k") is None
        assert store.remove("k") is False

    def test_binary_values(self, store):
        store.set("k", bytes(range(256)))
        assert store.get("k") == bytes(range(256))


class TestSQLiteVaultStore:
    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "store.db"
        SQLiteVaultStore(path).set("k", b"value")
        assert SQLiteVaultStore(path).get("k") == b"value"

    def test_default_path_from_settings(self, tmp_path):
        store = SQLiteVaultStore()
        assert store.db_path == tmp_path / "vault_store.db"
        assert store.db_path.exists()


class TestAccountVault:
    @pytest.mark.asyncio
    async def test_save_restore(self, store, wallet, sample_payload):
        vault = AccountVault(store, EnvelopeVaultService())

        await vault.save(sample_payload, ALICE, Network.TESTNET, wallet)

        assert vault.has_stored(ALICE, Network.TESTNET)
        assert not vault.has_stored(ALICE, Network.MAINNET)
        assert await vault.restore(ALICE, Network.TESTNET, wallet) == sample_payload

    @pytest.mark.asyncio
    async def test_restore_nothing_stored(self, store, wallet):
        vault = AccountVault(store)
        assert await vault.restore(ALICE, Network.TESTNET, wallet) is None
        assert wallet.request_log == []

    @pytest.mark.asyncio
    async def test_save_replaces_container(self, store, wallet, sample_payload):
        vault = AccountVault(store)
        first = await vault.save(sample_payload, ALICE, "testnet", wallet)
        second = await vault.save(sample_payload, ALICE, "testnet", wallet)

        assert first != second
        assert vault.load_container(ALICE, "testnet") == second

    @pytest.mark.asyncio
    async def test_entries_are_per_account(self, store, wallet, sample_payload):
        vault = AccountVault(store)
        await vault.save(sample_payload, ALICE, Network.TESTNET, wallet)

        assert vault.load_container(BOB, Network.TESTNET) is None
        # A foreign container copied under BOB's key still refuses BOB.
        store.set(storage_key(Network.TESTNET, BOB), store.get(storage_key(Network.TESTNET, ALICE)))
        with pytest.raises(IdentityMismatch):
            await vault.restore(BOB, Network.TESTNET, wallet)

    @pytest.mark.asyncio
    async def test_clear(self, store, wallet, sample_payload):
        vault = AccountVault(store)
        await vault.save(sample_payload, ALICE, Network.TESTNET, wallet)

        assert vault.clear(ALICE, Network.TESTNET) is True
        assert not vault.has_stored(ALICE, Network.TESTNET)
        assert vault.clear(ALICE, Network.TESTNET) is False

        log_text = get_audit_logger().log_file.read_text()
        assert "vault.stored" in log_text
        assert "vault.cleared" in log_text

    def test_corrupt_entry(self, store):
        store.set(storage_key(Network.TESTNET, ALICE), b"{not a container")
        with pytest.raises(IntegrityFailure):
            AccountVault(store).load_container(ALICE, Network.TESTNET)

    @pytest.mark.asyncio
    async def test_stored_entry_is_unified_json(self, store, wallet, sample_payload):
        vault = AccountVault(store)
        await vault.save(sample_payload, ALICE, Network.MAINNET, wallet)

        raw = store.get(storage_key(Network.MAINNET, ALICE))
        assert b'"encryptedPayload"' in raw
        assert b"a1" * 32 not in raw
