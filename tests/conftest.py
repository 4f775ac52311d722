"""
Shared pytest fixtures for the Wallet Vault test suite.

Autouse fixtures below isolate tests from live application data:
  - Settings      -> temp directories (store + audit log)
  - Audit logger  -> fresh instance per test writing under tmp_path
  - Link codec    -> API singleton reset so it picks up the test settings
"""

import logging

import pytest

from wallet_vault.core.config import VaultSettings, set_settings

ALICE = "0x1111111111111111111111111111111111111111"
BOB = "0x2222222222222222222222222222222222222222"


@pytest.fixture(autouse=True)
def _isolate_settings(tmp_path):
    """Point store and audit paths at tmp_path for every test."""
    set_settings(VaultSettings(
        link_origin="http://127.0.0.1:8000",
        store_path=tmp_path / "vault_store.db",
        audit_dir=tmp_path / "audit_logs",
    ))
    yield
    set_settings(None)


@pytest.fixture(autouse=True)
def _isolate_audit_logs(_isolate_settings):
    """Reset the global AuditLogger so each test gets its own log file.

    Handlers attached by the test's logger are closed on teardown so file
    handles into deleted temp directories do not pile up.
    """
    import wallet_vault.core.audit_log as audit_mod

    old_logger = audit_mod._audit_logger
    audit_mod._audit_logger = None

    yield

    stdlib_logger = logging.getLogger("wallet_vault.audit")
    for handler in list(stdlib_logger.handlers):
        stdlib_logger.removeHandler(handler)
        handler.close()
    audit_mod._audit_logger = old_logger


@pytest.fixture(autouse=True)
def _isolate_link_codec():
    import wallet_vault.api.vault_routes as routes_mod

    routes_mod._codec = None
    yield
    routes_mod._codec = None


# ── Vault fixtures ──────────────────────────────────────────────────


@pytest.fixture
def wallet():
    """Software wallet managing ALICE and BOB."""
    from wallet_vault.vault import LocalKeyProvider

    provider = LocalKeyProvider()
    provider.add_account(ALICE)
    provider.add_account(BOB)
    return provider


@pytest.fixture
def service():
    from wallet_vault.vault import EnvelopeVaultService

    return EnvelopeVaultService(clock=lambda: 1700000000000)


@pytest.fixture
def sample_payload():
    from wallet_vault.vault import KeyRecord, Network, VaultPayload

    return VaultPayload(
        keys=[
            KeyRecord(
                private_key="0x" + "a1" * 32,
                public_key="0x02" + "b2" * 32,
                key_index=2,
                account_index=3,
                network=Network.TESTNET,
            ),
            KeyRecord(
                private_key="0x" + "c3" * 32,
                public_key="0x03" + "d4" * 32,
                key_index=4,
                account_index=3,
                network=Network.MAINNET,
                address="0x" + "e5" * 20,
            ),
        ],
        timestamp=1699999999000,
    )
