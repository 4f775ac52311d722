# Wallet Vault - Encrypted Container
#
# The container is the only durable artifact of the vault: it is what gets
# stored, downloaded as a file or embedded in a shareable link.
#
# Two wire shapes are accepted on read and normalized immediately:
#   - unified: "encryptedPayload" = base64(ciphertext || tag)
#   - legacy:  "encryptedData" + "authTag" as separate base64 blobs
# Only the unified shape is ever written.

import json
from dataclasses import dataclass
from typing import Annotated, Any, Dict, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    StrictInt,
    Tag,
    TypeAdapter,
    ValidationError,
)

from .encryption import EncryptionService
from .exceptions import InvalidLinkFormat

CONTAINER_VERSION = "1.0"
SUPPORTED_VERSIONS = frozenset({CONTAINER_VERSION})


@dataclass(frozen=True)
class EncryptedContainer:
    """Envelope-encrypted vault.

    wrapped_key: DataKey sealed for the recipient wallet (JSON sealed box bytes)
    ciphertext:  AES-256-GCM output, ciphertext followed by its 16-byte tag
    nonce:       12-byte GCM nonce
    recipient:   lowercase account the container was sealed for
    """
    wrapped_key: bytes
    ciphertext: bytes
    nonce: bytes
    recipient: str
    version: str = CONTAINER_VERSION
    timestamp: int = 0

    def __post_init__(self):
        object.__setattr__(self, "recipient", self.recipient.lower())

    def __repr__(self) -> str:
        return (
            f"EncryptedContainer(recipient={self.recipient}, version={self.version}, "
            f"timestamp={self.timestamp}, ciphertext={len(self.ciphertext)} bytes)"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Unified wire format."""
        return {
            "encryptedDEK": EncryptionService.encode_for_storage(self.wrapped_key),
            "encryptedPayload": EncryptionService.encode_for_storage(self.ciphertext),
            "iv": EncryptionService.encode_for_storage(self.nonce),
            "account": self.recipient,
            "version": self.version,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "EncryptedContainer":
        """Parse either wire shape.

        Raises:
            InvalidLinkFormat: data is not a vault container
        """
        try:
            wire = _WIRE_ADAPTER.validate_python(data)
            return wire.normalize()
        except ValidationError as e:
            raise InvalidLinkFormat(
                f"not a vault container: {e.error_count()} validation error(s)"
            ) from e
        except ValueError as e:
            raise InvalidLinkFormat(f"not a vault container: {e}") from e

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Vault file contents."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> "EncryptedContainer":
        try:
            data = json.loads(text)
        except (TypeError, ValueError, RecursionError) as e:
            raise InvalidLinkFormat(f"vault file is not valid JSON: {e}") from e
        return cls.from_dict(data)

    @property
    def is_supported_version(self) -> bool:
        return self.version in SUPPORTED_VERSIONS


# ── Wire variants ───────────────────────────────────────────────────


class _ContainerV1Base(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    encrypted_dek: str = Field(alias="encryptedDEK", min_length=1)
    iv: str
    account: str = Field(min_length=1)
    version: str
    timestamp: StrictInt

    def _build(self, ciphertext: bytes) -> EncryptedContainer:
        nonce = EncryptionService.decode_from_storage(self.iv)
        if len(nonce) != EncryptionService.NONCE_LENGTH:
            raise ValueError(f"iv must be {EncryptionService.NONCE_LENGTH} bytes, got {len(nonce)}")
        if len(ciphertext) < EncryptionService.TAG_LENGTH:
            raise ValueError("ciphertext shorter than the GCM tag")
        return EncryptedContainer(
            wrapped_key=EncryptionService.decode_from_storage(self.encrypted_dek),
            ciphertext=ciphertext,
            nonce=nonce,
            recipient=self.account,
            version=self.version,
            timestamp=self.timestamp,
        )


class ContainerV1Unified(_ContainerV1Base):
    """Current shape: ciphertext and tag in one field."""
    encrypted_payload: str = Field(alias="encryptedPayload", min_length=1)

    def normalize(self) -> EncryptedContainer:
        return self._build(EncryptionService.decode_from_storage(self.encrypted_payload))


class ContainerV1Legacy(_ContainerV1Base):
    """Older shape: ciphertext and tag as separate fields (read-only)."""
    encrypted_data: str = Field(alias="encryptedData", min_length=1)
    auth_tag: str = Field(alias="authTag", min_length=1)

    def normalize(self) -> EncryptedContainer:
        body = EncryptionService.decode_from_storage(self.encrypted_data)
        tag = EncryptionService.decode_from_storage(self.auth_tag)
        if len(tag) != EncryptionService.TAG_LENGTH:
            raise ValueError(f"authTag must be {EncryptionService.TAG_LENGTH} bytes, got {len(tag)}")
        # Byte order is ciphertext then tag, matching WebCrypto AES-GCM output.
        return self._build(body + tag)


def _wire_shape(value: Any) -> Optional[str]:
    """Pick the variant: unified wins when both shapes are present."""
    if isinstance(value, dict):
        if value.get("encryptedPayload"):
            return "unified"
        if value.get("encryptedData") and value.get("authTag"):
            return "legacy"
    return None


ContainerWire = Annotated[
    Union[
        Annotated[ContainerV1Unified, Tag("unified")],
        Annotated[ContainerV1Legacy, Tag("legacy")],
    ],
    Discriminator(_wire_shape),
]

_WIRE_ADAPTER: TypeAdapter = TypeAdapter(ContainerWire)
