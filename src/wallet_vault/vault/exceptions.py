"""
Vault Exception Classes

Every failure of the envelope scheme maps to exactly one of these kinds so
callers can tell "wrong wallet" from "corrupted data" from "user declined".
"""


class VaultError(Exception):
    """Base exception for vault operations"""

    user_message = "The vault operation failed."

    def __init__(self, message: str = "", user_message: str = ""):
        super().__init__(message or self.user_message)
        if user_message:
            self.user_message = user_message


class KeyAccessDenied(VaultError):
    """Raised when the user declines a wallet encryption/decryption request"""

    user_message = "You denied the wallet request. Approve it in your wallet to continue."


class KeyAccessUnavailable(VaultError):
    """Raised when no wallet provider is present or it cannot serve the request"""

    user_message = (
        "No compatible wallet is available. Connect a wallet that supports "
        "encryption and decryption."
    )


class IdentityMismatch(VaultError):
    """Raised when a vault is opened by an account it was not sealed for"""

    user_message = "This vault was encrypted by a different wallet."


class IntegrityFailure(VaultError):
    """Raised when authentication of the container or wrapped key fails"""

    user_message = "Failed to decrypt vault. The data may be corrupted."


class MalformedPayload(VaultError):
    """Raised when decrypted bytes are not a valid vault structure"""

    user_message = "The vault decrypted but its contents are not a valid key list."


class UnsupportedVersion(VaultError):
    """Raised when a container declares a format version this build cannot read"""

    user_message = "This vault was created by an unsupported version of the tool."


class InvalidLinkFormat(VaultError):
    """Raised when a string or document is not a vault container"""

    user_message = "Invalid vault link."
