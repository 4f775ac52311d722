# Wallet Vault - Envelope Vault Service
#
# Envelope encryption of a VaultPayload for one wallet account:
#   1. fresh DataKey (256-bit) + fresh GCM nonce
#   2. AES-256-GCM the serialized payload under the DataKey
#   3. seal the DataKey to the wallet's X25519 encryption public key
#   4. wipe the DataKey
#
# Decryption reverses it, with the wallet opening the sealed DataKey after
# the user confirms. The recipient check runs before the wallet is touched,
# so a wrong-account attempt never produces a prompt.
#
# The provider is injected per call; the service holds no key material and
# no per-call state, so concurrent calls need no coordination.

import logging
import time
from typing import Any, Callable, Dict, Optional

from ..core import EventSeverity, EventType, get_audit_logger
from .container import CONTAINER_VERSION, SUPPORTED_VERSIONS, EncryptedContainer
from .encryption import EncryptionService
from .exceptions import (
    IdentityMismatch,
    IntegrityFailure,
    KeyAccessDenied,
    KeyAccessUnavailable,
    MalformedPayload,
    UnsupportedVersion,
    VaultError,
)
from .key_material import DataKey
from .models import VaultPayload
from .providers import AsymmetricKeyProvider
from .sealed_box import SEALED_BOX_VERSION, SealedEnvelope, seal

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def identities_match(a: str, b: str) -> bool:
    """Case-insensitive account comparison (checksummed vs lowercase addresses)."""
    return a.lower() == b.lower()


class EnvelopeVaultService:
    """
    Encrypts vaults so only one wallet account can open them.

    Security:
    - DataKey and nonce are fresh per call (no nonce reuse possible)
    - DataKey is wiped on every exit path, including cancellation
    - Only the wallet ever sees the private half of the wrapping key
    - Every outcome is written to the audit log (never key material)
    """

    FORMAT_VERSION = CONTAINER_VERSION

    def __init__(self, clock: Optional[Callable[[], int]] = None):
        """
        Args:
            clock: Returns current time in ms (injected for tests)
        """
        self._clock = clock or _now_ms

    @staticmethod
    def is_supported(provider: Any) -> bool:
        """True when provider can serve both the public key and decrypt calls."""
        if provider is None:
            return False
        return (
            callable(getattr(provider, "get_encryption_public_key", None))
            and callable(getattr(provider, "decrypt", None))
        )

    @staticmethod
    def get_security_info() -> Dict[str, Any]:
        """Describe the scheme for display."""
        return {
            "keyExchange": SEALED_BOX_VERSION,
            "dataEncryption": "AES-256-GCM",
            "dekLength": DataKey.LENGTH * 8,
            "nonceLength": EncryptionService.NONCE_LENGTH * 8,
            "formatVersion": CONTAINER_VERSION,
            "standard": "Based on EIP-1098",
            "storage": "Client-side only (local store or URL fragment)",
        }

    async def encrypt(
        self,
        payload: VaultPayload,
        recipient: str,
        provider: AsymmetricKeyProvider,
    ) -> EncryptedContainer:
        """
        Seal a vault for ``recipient``.

        Calls ``provider.get_encryption_public_key`` exactly once.

        Raises:
            ValueError: recipient is empty
            KeyAccessDenied: user declined to share the encryption key
            KeyAccessUnavailable: no usable provider / key
        """
        if not recipient:
            raise ValueError("recipient account must not be empty")
        if not self.is_supported(provider):
            raise KeyAccessUnavailable("No wallet provider found")

        plaintext = payload.to_bytes()
        timestamp = self._clock()

        try:
            with DataKey.generate() as dek:
                nonce, ciphertext = EncryptionService.encrypt(plaintext, dek)

                public_key = await self._fetch_public_key(recipient, provider)
                try:
                    envelope = seal(dek.to_base64(), public_key)
                except ValueError as e:
                    raise KeyAccessUnavailable(
                        f"wallet returned an invalid encryption public key: {e}"
                    ) from e
        except (KeyAccessDenied, KeyAccessUnavailable) as e:
            self._audit_access_failure(recipient, "encrypt", e)
            raise

        container = EncryptedContainer(
            wrapped_key=envelope.to_bytes(),
            ciphertext=ciphertext,
            nonce=nonce,
            recipient=recipient,
            version=self.FORMAT_VERSION,
            timestamp=timestamp,
        )

        get_audit_logger().log_vault_event(
            EventType.VAULT_ENCRYPTED,
            "Vault encrypted",
            details={"account": container.recipient, "key_count": len(payload.keys)},
        )
        return container

    async def decrypt(
        self,
        container: EncryptedContainer,
        caller: str,
        provider: AsymmetricKeyProvider,
    ) -> VaultPayload:
        """
        Open a vault as ``caller``.

        Raises:
            IdentityMismatch: container was sealed for another account
            UnsupportedVersion: unknown container format version
            KeyAccessDenied / KeyAccessUnavailable: wallet refused or absent
            IntegrityFailure: container or wrapped key was altered/corrupted
            MalformedPayload: decrypted bytes are not a vault
        """
        # Checked before the provider so a wrong wallet never gets a prompt.
        if not caller or not identities_match(caller, container.recipient):
            get_audit_logger().log_vault_event(
                EventType.VAULT_IDENTITY_MISMATCH,
                "Decryption attempted by a different account",
                details={"account": container.recipient, "caller": (caller or "").lower()},
                severity=EventSeverity.INVESTIGATE,
            )
            raise IdentityMismatch(
                f"vault was encrypted for {container.recipient}, not {(caller or '').lower()}"
            )

        if container.version not in SUPPORTED_VERSIONS:
            get_audit_logger().log_vault_event(
                EventType.VAULT_DECRYPT_FAILED,
                "Vault format version not supported",
                details={
                    "account": container.recipient,
                    "error": UnsupportedVersion.__name__,
                    "version": container.version[:32],
                },
                severity=EventSeverity.INVESTIGATE,
            )
            raise UnsupportedVersion(f"unsupported container version {container.version!r}")

        try:
            envelope = SealedEnvelope.from_bytes(container.wrapped_key)
            if not self.is_supported(provider):
                raise KeyAccessUnavailable("No wallet provider found")

            dek_b64 = await self._unwrap(caller, envelope, provider)
            with DataKey.from_base64(dek_b64) as dek:
                plaintext = EncryptionService.decrypt(container.nonce, container.ciphertext, dek)

            payload = VaultPayload.from_bytes(plaintext)
        except (KeyAccessDenied, KeyAccessUnavailable) as e:
            self._audit_access_failure(container.recipient, "decrypt", e)
            raise
        except (IntegrityFailure, MalformedPayload) as e:
            get_audit_logger().log_vault_event(
                EventType.VAULT_DECRYPT_FAILED,
                "Vault decryption failed",
                details={"account": container.recipient, "error": type(e).__name__},
                severity=EventSeverity.ALERT,
            )
            raise

        get_audit_logger().log_vault_event(
            EventType.VAULT_DECRYPTED,
            "Vault decrypted",
            details={"account": container.recipient, "key_count": len(payload.keys)},
        )
        return payload

    # ── Provider calls ──────────────────────────────────────────────

    @staticmethod
    async def _fetch_public_key(recipient: str, provider: AsymmetricKeyProvider) -> str:
        try:
            public_key = await provider.get_encryption_public_key(recipient)
        except VaultError:
            raise
        except Exception as e:
            raise KeyAccessUnavailable(f"wallet could not provide an encryption key: {e}") from e
        if not isinstance(public_key, str) or not public_key:
            raise KeyAccessUnavailable("wallet returned no encryption public key")
        return public_key

    @staticmethod
    async def _unwrap(
        caller: str, envelope: SealedEnvelope, provider: AsymmetricKeyProvider,
    ) -> str:
        try:
            dek_b64 = await provider.decrypt(caller, envelope.to_hex_param())
        except VaultError:
            raise
        except Exception as e:
            raise KeyAccessUnavailable(f"wallet could not decrypt the vault key: {e}") from e
        if not isinstance(dek_b64, str):
            raise IntegrityFailure("wallet returned a non-text vault key")
        return dek_b64

    @staticmethod
    def _audit_access_failure(account: str, operation: str, error: VaultError) -> None:
        get_audit_logger().log_vault_event(
            EventType.VAULT_ACCESS_DENIED,
            f"Wallet refused {operation}",
            details={
                "account": account.lower(),
                "operation": operation,
                "error": type(error).__name__,
            },
            severity=EventSeverity.INVESTIGATE,
        )
