# Wallet Vault - Plaintext Vault Model
#
# VaultPayload is the plaintext that gets sealed into a container. It only
# ever exists in memory: encrypt() serializes it, decrypt() rebuilds it.
# Private/public key strings are opaque here (0x-prefixed hex produced by
# the signer library); they are carried, never interpreted.

import json
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .exceptions import MalformedPayload

PAYLOAD_VERSION = "1.0"


class Network(str, Enum):
    """Network a stored API key belongs to."""
    MAINNET = "mainnet"
    TESTNET = "testnet"


def _require(data: Dict[str, Any], name: str, kind: type) -> Any:
    value = data.get(name)
    # bool is an int subclass; an index of True is not an index.
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise MalformedPayload(f"field {name!r} must be {kind.__name__}, got {type(value).__name__}")
    return value


@dataclass
class KeyRecord:
    """One API key held in the vault."""
    private_key: str
    public_key: str
    key_index: int
    account_index: int
    network: Network
    address: Optional[str] = None

    def __post_init__(self):
        self.network = Network(self.network)

    def __repr__(self) -> str:
        """Redact the private key so records can be logged safely."""
        return (
            f"KeyRecord(key_index={self.key_index}, account_index={self.account_index}, "
            f"network={self.network.value}, address={self.address!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "privateKey": self.private_key,
            "publicKey": self.public_key,
            "keyIndex": self.key_index,
            "accountIndex": self.account_index,
            "network": self.network.value,
        }
        if self.address is not None:
            d["address"] = self.address
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "KeyRecord":
        if not isinstance(d, dict):
            raise MalformedPayload("key entry must be an object")
        network = _require(d, "network", str)
        try:
            network = Network(network)
        except ValueError:
            raise MalformedPayload(f"unknown network {network!r}")
        address = d.get("address")
        if address is not None and not isinstance(address, str):
            raise MalformedPayload("field 'address' must be str")
        return cls(
            private_key=_require(d, "privateKey", str),
            public_key=_require(d, "publicKey", str),
            key_index=_require(d, "keyIndex", int),
            account_index=_require(d, "accountIndex", int),
            network=network,
            address=address,
        )


@dataclass
class VaultPayload:
    """Ordered list of key records plus format version and creation time (ms)."""
    keys: List[KeyRecord] = field(default_factory=list)
    version: str = PAYLOAD_VERSION
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keys": [k.to_dict() for k in self.keys],
            "version": self.version,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "VaultPayload":
        if not isinstance(d, dict):
            raise MalformedPayload("vault payload must be an object")
        keys = d.get("keys")
        if not isinstance(keys, list):
            raise MalformedPayload("field 'keys' must be a list")
        return cls(
            keys=[KeyRecord.from_dict(k) for k in keys],
            version=_require(d, "version", str),
            timestamp=_require(d, "timestamp", int),
        )

    def to_bytes(self) -> bytes:
        """Canonical UTF-8 JSON (stable key order, compact separators)."""
        return json.dumps(self.to_dict(), separators=(",", ":")).encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> "VaultPayload":
        try:
            decoded = json.loads(data.decode("utf-8"))
        except (ValueError, RecursionError) as e:
            raise MalformedPayload(f"vault payload is not valid JSON: {type(e).__name__}") from e
        return cls.from_dict(decoded)
