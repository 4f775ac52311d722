# Tests for wallet providers
#
# Coverage:
#   - RequestProviderAdapter: EIP-1193 request shape + error mapping
#   - LocalKeyProvider: accounts, approval callback, request log
#   - Envelope round trip through an injected-style wallet

from unittest.mock import MagicMock

import pytest

from wallet_vault.vault import (
    AsymmetricKeyProvider,
    EnvelopeVaultService,
    IntegrityFailure,
    KeyAccessDenied,
    KeyAccessUnavailable,
    LocalKeyProvider,
    RequestProviderAdapter,
)
from wallet_vault.vault.providers import METHOD_DECRYPT, METHOD_GET_PUBLIC_KEY
from wallet_vault.vault.sealed_box import seal

ALICE = "0x1111111111111111111111111111111111111111"


class ProviderRpcError(Exception):
    """Error shape injected wallets reject with."""

    def __init__(self, code, message):
        super().__init__(message)
        self.code = code


class FakeInjectedWallet:
    """Stands in for an injected wallet exposing ``request({method, params})``."""

    def __init__(self, backend: LocalKeyProvider, error: Exception = None):
        self.backend = backend
        self.error = error
        self.requests = []

    async def request(self, args):
        self.requests.append(args)
        if self.error is not None:
            raise self.error
        method, params = args["method"], args["params"]
        if method == METHOD_GET_PUBLIC_KEY:
            return await self.backend.get_encryption_public_key(params[0])
        if method == METHOD_DECRYPT:
            return await self.backend.decrypt(params[1], params[0])
        raise ProviderRpcError(-32601, f"method {method} not supported")


@pytest.fixture
def backend():
    provider = LocalKeyProvider()
    provider.add_account(ALICE)
    return provider


class TestRequestProviderAdapter:
    def test_requires_request_method(self):
        with pytest.raises(KeyAccessUnavailable):
            RequestProviderAdapter(None)
        with pytest.raises(KeyAccessUnavailable):
            RequestProviderAdapter(object())

    def test_satisfies_protocol(self, backend):
        assert isinstance(RequestProviderAdapter(FakeInjectedWallet(backend)), AsymmetricKeyProvider)
        assert isinstance(backend, AsymmetricKeyProvider)

    @pytest.mark.asyncio
    async def test_roundtrip_through_injected_wallet(self, backend, sample_payload):
        injected = FakeInjectedWallet(backend)
        adapter = RequestProviderAdapter(injected)
        service = EnvelopeVaultService()

        container = await service.encrypt(sample_payload, ALICE, adapter)
        assert await service.decrypt(container, ALICE, adapter) == sample_payload

        methods = [r["method"] for r in injected.requests]
        assert methods == [METHOD_GET_PUBLIC_KEY, METHOD_DECRYPT]
        assert injected.requests[0]["params"] == [ALICE]

    @pytest.mark.asyncio
    async def test_decrypt_params_order(self, backend):
        injected = FakeInjectedWallet(backend)
        adapter = RequestProviderAdapter(injected)
        public_key = await adapter.get_encryption_public_key(ALICE)
        param = seal(b"hello", public_key).to_hex_param()

        assert await adapter.decrypt(ALICE, param) == "hello"
        assert injected.requests[-1]["params"] == [param, ALICE]

    @pytest.mark.asyncio
    async def test_sync_request(self):
        provider = MagicMock()
        provider.request.return_value = "cHVibGljLWtleQ=="
        adapter = RequestProviderAdapter(provider)

        assert await adapter.get_encryption_public_key(ALICE) == "cHVibGljLWtleQ=="
        provider.request.assert_called_once_with(
            {"method": METHOD_GET_PUBLIC_KEY, "params": [ALICE]}
        )

    @pytest.mark.parametrize("error,expected", [
        (ProviderRpcError(4001, "User rejected the request."), KeyAccessDenied),
        (Exception("MetaMask EncryptionPublicKey: User denied message EncryptionPublicKey."), KeyAccessDenied),
        (ProviderRpcError(4100, "Unauthorized"), KeyAccessUnavailable),
        (RuntimeError("extension disconnected"), KeyAccessUnavailable),
    ])
    @pytest.mark.asyncio
    async def test_public_key_errors(self, backend, error, expected):
        adapter = RequestProviderAdapter(FakeInjectedWallet(backend, error=error))
        with pytest.raises(expected):
            await adapter.get_encryption_public_key(ALICE)

    @pytest.mark.parametrize("error,expected", [
        (ProviderRpcError(4001, "User rejected the request."), KeyAccessDenied),
        (Exception("MetaMask Decryption: User denied message decryption."), KeyAccessDenied),
        (ProviderRpcError(4200, "Unsupported method"), KeyAccessUnavailable),
        (ProviderRpcError(4900, "Disconnected"), KeyAccessUnavailable),
        (ProviderRpcError(-32601, "Method not found"), KeyAccessUnavailable),
        (ProviderRpcError(-32603, "Decryption failed"), IntegrityFailure),
        (ValueError("Bad nonce"), IntegrityFailure),
    ])
    @pytest.mark.asyncio
    async def test_decrypt_errors(self, backend, error, expected):
        adapter = RequestProviderAdapter(FakeInjectedWallet(backend, error=error))
        with pytest.raises(expected):
            await adapter.decrypt(ALICE, "0x00")

    @pytest.mark.asyncio
    async def test_empty_public_key(self):
        provider = MagicMock()
        provider.request.return_value = None
        with pytest.raises(KeyAccessUnavailable):
            await RequestProviderAdapter(provider).get_encryption_public_key(ALICE)

    @pytest.mark.asyncio
    async def test_non_text_decrypt_result(self):
        provider = MagicMock()
        provider.request.return_value = 123
        with pytest.raises(IntegrityFailure):
            await RequestProviderAdapter(provider).decrypt(ALICE, "0x00")

    @pytest.mark.asyncio
    async def test_vault_errors_pass_through(self):
        provider = MagicMock()
        provider.request.side_effect = KeyAccessDenied("already mapped")
        with pytest.raises(KeyAccessDenied):
            await RequestProviderAdapter(provider).decrypt(ALICE, "0x00")


class TestLocalKeyProvider:
    @pytest.mark.asyncio
    async def test_public_key_matches_registration(self):
        provider = LocalKeyProvider()
        registered = provider.add_account(ALICE)
        assert await provider.get_encryption_public_key(ALICE) == registered

    def test_fixed_private_key(self):
        a = LocalKeyProvider().add_account(ALICE, private_key=b"\x07" * 32)
        b = LocalKeyProvider().add_account(ALICE, private_key=b"\x07" * 32)
        assert a == b

    def test_accounts_case_insensitive(self):
        provider = LocalKeyProvider()
        provider.add_account("0xABCDEF0000000000000000000000000000000000")
        assert provider.has_account("0xabcdef0000000000000000000000000000000000")
        assert not provider.has_account(ALICE)

    @pytest.mark.asyncio
    async def test_unknown_account(self):
        with pytest.raises(KeyAccessUnavailable):
            await LocalKeyProvider().get_encryption_public_key(ALICE)

    @pytest.mark.asyncio
    async def test_denial_is_logged(self):
        provider = LocalKeyProvider(approve=lambda method, account: False)
        provider.add_account(ALICE)

        with pytest.raises(KeyAccessDenied):
            await provider.get_encryption_public_key(ALICE)

        [entry] = provider.request_log
        assert entry.method == METHOD_GET_PUBLIC_KEY
        assert entry.account == ALICE
        assert entry.approved is False

    @pytest.mark.asyncio
    async def test_approval_sees_method_and_account(self, backend):
        seen = []

        def approve(method, account):
            seen.append((method, account))
            return True

        provider = LocalKeyProvider(approve=approve)
        provider.add_account(ALICE)
        await provider.get_encryption_public_key(ALICE)
        assert seen == [(METHOD_GET_PUBLIC_KEY, ALICE)]

    @pytest.mark.asyncio
    async def test_decrypt_bad_param(self, backend):
        with pytest.raises(IntegrityFailure):
            await backend.decrypt(ALICE, "not hex")

    @pytest.mark.asyncio
    async def test_decrypt_non_utf8(self, backend):
        public_key = await backend.get_encryption_public_key(ALICE)
        param = seal(b"\xff\xfe", public_key).to_hex_param()
        with pytest.raises(IntegrityFailure):
            await backend.decrypt(ALICE, param)
