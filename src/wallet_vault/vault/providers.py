# Wallet Vault - Asymmetric key providers
#
# The provider is the wallet: it owns the X25519 encryption key for an
# account and may ask the user before releasing the public key or opening a
# wrapped key. It is always passed into each call, never looked up globally.
#
# Two implementations:
#   - RequestProviderAdapter: wraps an EIP-1193 style object
#     (`await provider.request({"method": ..., "params": [...]})`)
#   - LocalKeyProvider: in-process software wallet (PyNaCl) used by tests,
#     the CLI and anyone holding their own encryption key

import inspect
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Protocol,
    Union,
    runtime_checkable,
)

from nacl.public import PrivateKey

from .exceptions import (
    IntegrityFailure,
    KeyAccessDenied,
    KeyAccessUnavailable,
    VaultError,
)
from .sealed_box import SealedEnvelope, encode_public_key, open_sealed

logger = logging.getLogger(__name__)

METHOD_GET_PUBLIC_KEY = "eth_getEncryptionPublicKey"
METHOD_DECRYPT = "eth_decrypt"

# EIP-1193 provider error codes
USER_REJECTED_CODE = 4001
UNAVAILABLE_CODES = frozenset({4100, 4200, 4900, 4901, -32601})


@runtime_checkable
class AsymmetricKeyProvider(Protocol):
    """Capability the vault consumes. Both calls may wait on a human."""

    async def get_encryption_public_key(self, account: str) -> str:
        """Base64 X25519 public key for ``account``."""
        ...

    async def decrypt(self, account: str, ciphertext: str) -> str:
        """Open ``0x``-hex JSON sealed box; returns the sealed text (base64 DEK)."""
        ...


# ── EIP-1193 adapter ────────────────────────────────────────────────


def _is_denial(error: BaseException) -> bool:
    if getattr(error, "code", None) == USER_REJECTED_CODE:
        return True
    return "User denied" in str(error)


def _is_unavailable(error: BaseException) -> bool:
    return getattr(error, "code", None) in UNAVAILABLE_CODES


class RequestProviderAdapter:
    """Adapts a wallet exposing ``request({"method", "params"})``.

    Error mapping:
      - code 4001 / "User denied"          -> KeyAccessDenied
      - 4100/4200/4900/4901/-32601         -> KeyAccessUnavailable
      - any other eth_decrypt failure       -> IntegrityFailure
      - any other public key failure        -> KeyAccessUnavailable
    """

    def __init__(self, provider: Any):
        if provider is None or not callable(getattr(provider, "request", None)):
            raise KeyAccessUnavailable("No wallet provider found")
        self._provider = provider

    async def _request(self, method: str, params: List[Any]) -> Any:
        result = self._provider.request({"method": method, "params": params})
        if inspect.isawaitable(result):
            result = await result
        return result

    async def get_encryption_public_key(self, account: str) -> str:
        try:
            public_key = await self._request(METHOD_GET_PUBLIC_KEY, [account])
        except VaultError:
            raise
        except Exception as e:
            if _is_denial(e):
                raise KeyAccessDenied("User denied access to encryption public key") from e
            raise KeyAccessUnavailable(f"{METHOD_GET_PUBLIC_KEY} failed: {e}") from e

        if not isinstance(public_key, str) or not public_key:
            raise KeyAccessUnavailable(f"{METHOD_GET_PUBLIC_KEY} returned no key")
        return public_key

    async def decrypt(self, account: str, ciphertext: str) -> str:
        try:
            plaintext = await self._request(METHOD_DECRYPT, [ciphertext, account])
        except VaultError:
            raise
        except Exception as e:
            if _is_denial(e):
                raise KeyAccessDenied("User denied decryption request") from e
            if _is_unavailable(e):
                raise KeyAccessUnavailable(f"{METHOD_DECRYPT} unavailable: {e}") from e
            raise IntegrityFailure(f"{METHOD_DECRYPT} failed: {e}") from e

        if not isinstance(plaintext, str):
            raise IntegrityFailure(f"{METHOD_DECRYPT} returned {type(plaintext).__name__}, expected str")
        return plaintext


# ── Software wallet ─────────────────────────────────────────────────


Approval = Callable[[str, str], Union[bool, Awaitable[bool]]]


@dataclass
class ProviderRequest:
    """One prompt the provider raised (for inspection, never contains keys)."""
    method: str
    account: str
    approved: bool
    at: str


class LocalKeyProvider:
    """In-process wallet holding one X25519 encryption key per account.

    Args:
        approve: Optional callback ``(method, account) -> bool`` (sync or
            async) standing in for the user's confirmation. Returning False
            raises KeyAccessDenied. Defaults to approving everything.
    """

    def __init__(self, approve: Optional[Approval] = None):
        self._keys: Dict[str, PrivateKey] = {}
        self._approve = approve
        self.request_log: List[ProviderRequest] = []

    def add_account(self, account: str, private_key: Optional[bytes] = None) -> str:
        """Register an account; returns its base64 encryption public key."""
        key = PrivateKey(private_key) if private_key is not None else PrivateKey.generate()
        self._keys[account.lower()] = key
        return encode_public_key(key.public_key)

    def has_account(self, account: str) -> bool:
        return account.lower() in self._keys

    def calls(self, method: str) -> List[ProviderRequest]:
        return [r for r in self.request_log if r.method == method]

    async def _confirm(self, method: str, account: str) -> PrivateKey:
        key = self._keys.get(account.lower())
        if key is None:
            raise KeyAccessUnavailable(f"Account {account} is not managed by this wallet")

        approved = True
        if self._approve is not None:
            approved = self._approve(method, account)
            if inspect.isawaitable(approved):
                approved = await approved

        logger.debug("Wallet prompt %s for %s: approved=%s", method, account, approved)
        self.request_log.append(ProviderRequest(
            method=method,
            account=account.lower(),
            approved=bool(approved),
            at=datetime.now(timezone.utc).isoformat(),
        ))
        if not approved:
            raise KeyAccessDenied(f"User denied {method}")
        return key

    async def get_encryption_public_key(self, account: str) -> str:
        key = await self._confirm(METHOD_GET_PUBLIC_KEY, account)
        return encode_public_key(key.public_key)

    async def decrypt(self, account: str, ciphertext: str) -> str:
        key = await self._confirm(METHOD_DECRYPT, account)
        envelope = SealedEnvelope.from_hex_param(ciphertext)
        plaintext = open_sealed(envelope, key)
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise IntegrityFailure("decrypted message is not UTF-8 text") from e
