# Vault Module - Wallet-bound envelope encryption
#
# Private keys are sealed with a per-call AES-256-GCM key, which is itself
# sealed to the wallet's x25519-xsalsa20-poly1305 encryption key.
# Containers travel as files, local store entries or #vault: links.

from .container import EncryptedContainer, CONTAINER_VERSION, SUPPORTED_VERSIONS
from .envelope import EnvelopeVaultService, identities_match
from .exceptions import (
    IdentityMismatch,
    IntegrityFailure,
    InvalidLinkFormat,
    KeyAccessDenied,
    KeyAccessUnavailable,
    MalformedPayload,
    UnsupportedVersion,
    VaultError,
)
from .link_codec import ShareableLinkCodec
from .models import KeyRecord, Network, VaultPayload
from .providers import AsymmetricKeyProvider, LocalKeyProvider, RequestProviderAdapter
from .store import AccountVault, MemoryVaultStore, SQLiteVaultStore, storage_key

__all__ = [
    "EnvelopeVaultService",
    "ShareableLinkCodec",
    "EncryptedContainer",
    "CONTAINER_VERSION",
    "SUPPORTED_VERSIONS",
    "identities_match",
    # Payload
    "KeyRecord",
    "Network",
    "VaultPayload",
    # Providers
    "AsymmetricKeyProvider",
    "LocalKeyProvider",
    "RequestProviderAdapter",
    # Storage
    "AccountVault",
    "MemoryVaultStore",
    "SQLiteVaultStore",
    "storage_key",
    # Errors
    "VaultError",
    "KeyAccessDenied",
    "KeyAccessUnavailable",
    "IdentityMismatch",
    "IntegrityFailure",
    "MalformedPayload",
    "UnsupportedVersion",
    "InvalidLinkFormat",
]
