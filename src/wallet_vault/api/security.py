# Wallet Vault - Local API session token
#
# `python -m wallet_vault serve` mints one token and prints it once. Link
# endpoints accept a request only when X-Session-Token carries that token,
# so a web page or another local process cannot build links through the API.

import secrets
from typing import Optional

from fastapi import Header, HTTPException, status

from ..core import EventSeverity, EventType, get_audit_logger

SESSION_HEADER = "X-Session-Token"

_SESSION_TOKEN: Optional[str] = None


def initialize_session_token() -> str:
    """Mint the token for this server process, replacing any earlier one."""
    global _SESSION_TOKEN
    _SESSION_TOKEN = secrets.token_urlsafe(32)
    return _SESSION_TOKEN


def _reject(status_code: int, detail: str) -> HTTPException:
    get_audit_logger().log_vault_event(
        EventType.VAULT_ACCESS_DENIED,
        "Local API request refused",
        details={"status": status_code, "reason": detail},
        severity=EventSeverity.INVESTIGATE,
    )
    return HTTPException(status_code=status_code, detail=detail)


async def verify_session_token(
    x_session_token: Optional[str] = Header(None, alias=SESSION_HEADER),
) -> str:
    """
    Dependency guarding the link endpoints.

    Raises:
        HTTPException: 503 while the server has no token yet, 401 when the
            header is missing or does not match
    """
    expected = _SESSION_TOKEN
    if expected is None:
        raise _reject(status.HTTP_503_SERVICE_UNAVAILABLE, "Session token not initialized")

    if x_session_token is None or not secrets.compare_digest(
        x_session_token.encode("utf-8"), expected.encode("utf-8")
    ):
        raise _reject(status.HTTP_401_UNAUTHORIZED, "Invalid or missing session token")

    return x_session_token
