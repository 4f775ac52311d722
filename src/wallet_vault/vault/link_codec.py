# Wallet Vault - Shareable Link Codec
#
# container <-> "<origin>/#vault:<url-safe-base64(JSON(container))>"
#
# The payload lives in the URL fragment, which browsers never send to the
# server on a normal page load. decode() returns None for anything that is
# not a vault link so callers can tell "not a vault link" apart from
# "vault link that fails to decrypt".

import base64
import binascii
import json
import logging
import re
from typing import Optional, Union

from ..core import EventSeverity, EventType, get_audit_logger, get_settings
from .container import EncryptedContainer
from .exceptions import InvalidLinkFormat

logger = logging.getLogger(__name__)

FRAGMENT_MARKER = "#vault:"
_FRAGMENT_RE = re.compile(r"#vault:(.+)$", re.DOTALL)


class ShareableLinkCodec:
    """Stateless encoder/decoder for vault links.

    Args:
        origin: Scheme + host the link points at. Defaults to the configured
            ``WALLET_VAULT_LINK_ORIGIN``.
    """

    def __init__(self, origin: Optional[str] = None):
        self.origin = (origin or get_settings().link_origin).rstrip("/")

    @staticmethod
    def fragment_payload(container: EncryptedContainer) -> str:
        """URL-safe base64 of the compact container JSON, padding stripped."""
        raw = json.dumps(container.to_dict(), separators=(",", ":")).encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")

    def encode(self, container: EncryptedContainer) -> str:
        link = f"{self.origin}/{FRAGMENT_MARKER}{self.fragment_payload(container)}"
        get_audit_logger().log_vault_event(
            EventType.VAULT_LINK_CREATED,
            "Shareable link created",
            details={"account": container.recipient, "length": len(link)},
        )
        return link

    def decode(self, link: str) -> Optional[EncryptedContainer]:
        """Parse a vault link. Never raises; returns None if not a vault link."""
        try:
            return self.parse(link)
        except InvalidLinkFormat as e:
            logger.debug("Rejected vault link: %s", e)
            get_audit_logger().log_vault_event(
                EventType.VAULT_LINK_REJECTED,
                "Input is not a vault link",
                details={"reason": str(e)[:200]},
                severity=EventSeverity.INVESTIGATE,
            )
            return None

    @staticmethod
    def parse(link: str) -> EncryptedContainer:
        """Strict variant of decode().

        Raises:
            InvalidLinkFormat: the string is not a vault link
        """
        if not isinstance(link, str):
            raise InvalidLinkFormat("link must be a string")

        match = _FRAGMENT_RE.search(link.strip())
        if not match:
            raise InvalidLinkFormat("no #vault: fragment")

        payload = match.group(1)
        payload += "=" * (-len(payload) % 4)

        try:
            # altchars maps "-" and "_" back to "+" and "/"
            raw = base64.b64decode(payload, altchars=b"-_", validate=True)
            data = json.loads(raw.decode("utf-8"))
        except (binascii.Error, UnicodeError, ValueError, RecursionError) as e:
            raise InvalidLinkFormat(f"fragment is not base64 JSON: {e}") from e

        return EncryptedContainer.from_dict(data)

    @staticmethod
    def parse_vault_file(text: Union[str, bytes]) -> Optional[EncryptedContainer]:
        """Read a downloaded vault file; None if it is not one."""
        try:
            return EncryptedContainer.from_json(text)
        except InvalidLinkFormat as e:
            logger.debug("Rejected vault file: %s", e)
            return None

    @staticmethod
    def export_filename(container: EncryptedContainer) -> str:
        """Suggested download name, e.g. ``vault-ecies-1a2b3c-1700000000000.json``."""
        return f"vault-ecies-{container.recipient[2:8]}-{container.timestamp}.json"
