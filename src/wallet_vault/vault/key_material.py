# Wallet Vault - Data Encryption Key lifecycle
#
# A DataKey is created immediately before use, owned by exactly one
# encrypt/decrypt call and overwritten with zeros when that call's scope
# ends (success, failure or cancellation). Use it as a context manager:
#
#     with DataKey.generate() as dek:
#         ...
#
# The raw bytes live in a bytearray so they can be wiped in place.

import base64
import binascii
import os

from .exceptions import IntegrityFailure

DEK_LENGTH = 32  # 256-bit AES key


class DataKey:
    """Mutable, wipeable holder for a 256-bit symmetric key."""

    LENGTH = DEK_LENGTH

    def __init__(self, raw: bytearray):
        if not isinstance(raw, bytearray):
            raise TypeError("DataKey requires a bytearray so it can be wiped")
        if len(raw) != self.LENGTH:
            raise ValueError(f"DataKey must be {self.LENGTH} bytes, got {len(raw)}")
        self._raw = raw
        self._wiped = False

    @classmethod
    def generate(cls) -> "DataKey":
        """Fresh key from the OS CSPRNG."""
        return cls(bytearray(os.urandom(cls.LENGTH)))

    @classmethod
    def from_base64(cls, text: str) -> "DataKey":
        """Import a key recovered from the wallet (base64 text)."""
        try:
            raw = bytearray(base64.b64decode(text, validate=True))
        except (binascii.Error, ValueError, TypeError) as e:
            raise IntegrityFailure("unwrapped key is not valid base64") from e
        if len(raw) != cls.LENGTH:
            raw[:] = bytes(len(raw))
            raise IntegrityFailure(f"unwrapped key has {len(raw)} bytes, expected {cls.LENGTH}")
        return cls(raw)

    @property
    def raw(self) -> bytearray:
        if self._wiped:
            raise RuntimeError("DataKey used after it was wiped")
        return self._raw

    def to_base64(self) -> bytes:
        """Base64 form sealed into the wrapped key."""
        return base64.b64encode(self.raw)

    def wipe(self) -> None:
        """Overwrite every byte with zero. Safe to call more than once."""
        self._raw[:] = bytes(len(self._raw))
        self._wiped = True

    @property
    def is_wiped(self) -> bool:
        return self._wiped and not any(self._raw)

    def __enter__(self) -> "DataKey":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()

    def __repr__(self) -> str:
        state = "wiped" if self._wiped else "live"
        return f"DataKey(<redacted>, {state})"
