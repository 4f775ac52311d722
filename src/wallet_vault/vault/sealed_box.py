# Wallet Vault - Asymmetric key wrapping (x25519-xsalsa20-poly1305)
#
# Wraps the DataKey for a wallet's encryption public key. The format matches
# what wallets implementing eth_getEncryptionPublicKey / eth_decrypt consume:
#
#   {"version": "x25519-xsalsa20-poly1305",
#    "nonce": <b64 24 bytes>,
#    "ephemPublicKey": <b64 32 bytes>,
#    "ciphertext": <b64 NaCl box>}
#
# Sealing needs only the recipient public key (fresh ephemeral X25519 pair per
# seal, no sender authentication). Opening needs the recipient private key,
# which only the wallet (or LocalKeyProvider) holds.

import json
from dataclasses import dataclass
from typing import Any, Dict

import nacl.utils
from nacl.exceptions import CryptoError
from nacl.public import Box, PrivateKey, PublicKey

from .encryption import EncryptionService
from .exceptions import IntegrityFailure

SEALED_BOX_VERSION = "x25519-xsalsa20-poly1305"

NONCE_SIZE = Box.NONCE_SIZE  # 24
PUBLIC_KEY_SIZE = PublicKey.SIZE  # 32
MAC_SIZE = 16


def _b64_field(d: Dict[str, Any], name: str) -> bytes:
    value = d.get(name)
    if not isinstance(value, str):
        raise IntegrityFailure(f"sealed box field {name!r} missing or not a string")
    try:
        return EncryptionService.decode_from_storage(value)
    except ValueError as e:
        raise IntegrityFailure(f"sealed box field {name!r}: {e}") from e


@dataclass(frozen=True)
class SealedEnvelope:
    """A DataKey sealed to one wallet encryption key."""
    nonce: bytes
    ephemeral_public_key: bytes
    ciphertext: bytes
    version: str = SEALED_BOX_VERSION

    def __repr__(self) -> str:
        return f"SealedEnvelope(version={self.version}, ciphertext={len(self.ciphertext)} bytes)"

    def to_dict(self) -> Dict[str, str]:
        return {
            "version": self.version,
            "nonce": EncryptionService.encode_for_storage(self.nonce),
            "ephemPublicKey": EncryptionService.encode_for_storage(self.ephemeral_public_key),
            "ciphertext": EncryptionService.encode_for_storage(self.ciphertext),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SealedEnvelope":
        """Parse and validate; any structural problem is an IntegrityFailure."""
        if not isinstance(d, dict):
            raise IntegrityFailure("sealed box must be a JSON object")
        if d.get("version") != SEALED_BOX_VERSION:
            raise IntegrityFailure(f"unsupported sealed box version {d.get('version')!r}")

        nonce = _b64_field(d, "nonce")
        ephemeral = _b64_field(d, "ephemPublicKey")
        ciphertext = _b64_field(d, "ciphertext")

        if len(nonce) != NONCE_SIZE:
            raise IntegrityFailure(f"sealed box nonce must be {NONCE_SIZE} bytes")
        if len(ephemeral) != PUBLIC_KEY_SIZE:
            raise IntegrityFailure(f"ephemeral public key must be {PUBLIC_KEY_SIZE} bytes")
        if len(ciphertext) <= MAC_SIZE:
            raise IntegrityFailure("sealed box ciphertext too short")

        return cls(nonce=nonce, ephemeral_public_key=ephemeral, ciphertext=ciphertext)

    def to_bytes(self) -> bytes:
        """Compact UTF-8 JSON; this is the container's wrapped key."""
        return json.dumps(self.to_dict(), separators=(",", ":")).encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> "SealedEnvelope":
        try:
            decoded = json.loads(data.decode("utf-8"))
        except (ValueError, RecursionError) as e:
            # ValueError covers bad UTF-8, bad JSON and oversized integers
            raise IntegrityFailure(f"wrapped key is not valid JSON: {type(e).__name__}") from e
        return cls.from_dict(decoded)

    def to_hex_param(self) -> str:
        """``0x``-prefixed hex of the JSON form, as eth_decrypt expects."""
        return "0x" + self.to_bytes().hex()

    @classmethod
    def from_hex_param(cls, text: str) -> "SealedEnvelope":
        if not isinstance(text, str) or not text.startswith("0x"):
            raise IntegrityFailure("eth_decrypt payload must be 0x-prefixed hex")
        try:
            data = bytes.fromhex(text[2:])
        except ValueError as e:
            raise IntegrityFailure("eth_decrypt payload is not even-length hex") from e
        return cls.from_bytes(data)


def load_public_key(public_key_b64: str) -> PublicKey:
    """Decode a wallet encryption public key (base64 X25519)."""
    raw = EncryptionService.decode_from_storage(public_key_b64)
    if len(raw) != PUBLIC_KEY_SIZE:
        raise ValueError(f"encryption public key must be {PUBLIC_KEY_SIZE} bytes, got {len(raw)}")
    return PublicKey(raw)


def encode_public_key(public_key: PublicKey) -> str:
    return EncryptionService.encode_for_storage(bytes(public_key))


def seal(plaintext: bytes, public_key_b64: str) -> SealedEnvelope:
    """Seal plaintext to a recipient public key with a fresh ephemeral key pair."""
    recipient = load_public_key(public_key_b64)
    ephemeral = PrivateKey.generate()
    nonce = nacl.utils.random(NONCE_SIZE)

    encrypted = Box(ephemeral, recipient).encrypt(plaintext, nonce)

    return SealedEnvelope(
        nonce=nonce,
        ephemeral_public_key=bytes(ephemeral.public_key),
        ciphertext=encrypted.ciphertext,
    )


def open_sealed(envelope: SealedEnvelope, private_key: PrivateKey) -> bytes:
    """Open a sealed envelope with the recipient private key.

    Raises:
        IntegrityFailure: wrong key, or any part of the envelope was altered.
    """
    if envelope.version != SEALED_BOX_VERSION:
        raise IntegrityFailure(f"unsupported sealed box version {envelope.version!r}")
    try:
        box = Box(private_key, PublicKey(envelope.ephemeral_public_key))
        return box.decrypt(envelope.ciphertext, envelope.nonce)
    except CryptoError as e:
        raise IntegrityFailure("sealed box authentication failed") from e
