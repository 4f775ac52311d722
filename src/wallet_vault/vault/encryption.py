# Wallet Vault - Bulk Encryption Service
#
# Payload encryption (AES-256-GCM) under a per-call DataKey.
# Base64 helpers for the container wire format.

import base64
import binascii
import os
from typing import Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .exceptions import IntegrityFailure
from .key_material import DataKey


class EncryptionService:
    """
    Handles the symmetric half of the envelope.

    Flow:
    1. Caller generates a fresh DataKey
    2. AES-256-GCM encrypts the serialized payload under a fresh nonce
    3. The nonce travels alongside the ciphertext (never reused: DEK is fresh)
    """

    KEY_LENGTH = DataKey.LENGTH  # 256 bits for AES-256
    NONCE_LENGTH = 12  # 96-bit nonce for GCM (recommended)
    TAG_LENGTH = 16  # GCM authentication tag, appended to ciphertext

    @staticmethod
    def generate_nonce() -> bytes:
        """Generate a cryptographically random GCM nonce."""
        return os.urandom(EncryptionService.NONCE_LENGTH)

    @staticmethod
    def encrypt(plaintext: bytes, key: DataKey) -> Tuple[bytes, bytes]:
        """
        Encrypt plaintext using AES-256-GCM.

        Args:
            plaintext: Serialized vault payload
            key: Live DataKey

        Returns:
            Tuple of (nonce, ciphertext||tag)
        """
        nonce = EncryptionService.generate_nonce()
        aesgcm = AESGCM(key.raw)
        ciphertext = aesgcm.encrypt(nonce, plaintext, None)

        return nonce, ciphertext

    @staticmethod
    def decrypt(nonce: bytes, ciphertext: bytes, key: DataKey) -> bytes:
        """
        Decrypt ciphertext||tag using AES-256-GCM.

        Raises:
            IntegrityFailure: If authentication fails (tampered or corrupted)
        """
        if len(nonce) != EncryptionService.NONCE_LENGTH:
            raise IntegrityFailure(f"nonce must be {EncryptionService.NONCE_LENGTH} bytes")
        aesgcm = AESGCM(key.raw)
        try:
            return aesgcm.decrypt(nonce, ciphertext, None)
        except InvalidTag as e:
            raise IntegrityFailure("AES-GCM authentication failed") from e

    @staticmethod
    def encode_for_storage(data: bytes) -> str:
        """Encode binary data as standard base64 text."""
        return base64.b64encode(data).decode('ascii')

    @staticmethod
    def decode_from_storage(data: str) -> bytes:
        """
        Decode standard base64 text, rejecting anything non-canonical.

        Non-alphabet characters and non-zero padding bits are refused so that
        two different strings never decode to the same bytes.
        """
        try:
            raw = base64.b64decode(data.encode('ascii'), validate=True)
        except (binascii.Error, UnicodeEncodeError, AttributeError) as e:
            raise ValueError(f"invalid base64: {e}") from e
        if base64.b64encode(raw).decode('ascii') != data:
            raise ValueError("non-canonical base64")
        return raw
