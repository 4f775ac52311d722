# Vault API - link endpoints for the local client
#
# The API never decrypts and never stores: decryption needs the user's
# wallet, which only the client has. It only builds and parses links.

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from ..vault import EncryptedContainer, EnvelopeVaultService, InvalidLinkFormat, ShareableLinkCodec
from .security import verify_session_token

router = APIRouter(prefix="/api/vault", tags=["vault"])

_codec: Optional[ShareableLinkCodec] = None


def get_link_codec() -> ShareableLinkCodec:
    """Codec bound to the configured origin (overridable in tests)."""
    global _codec
    if _codec is None:
        _codec = ShareableLinkCodec()
    return _codec


# Request/Response Models
class ParseLinkRequest(BaseModel):
    link: str = Field(..., min_length=1)


class LinkResponse(BaseModel):
    link: str
    filename: str
    account: str


class ParseLinkResponse(BaseModel):
    valid: bool
    container: Optional[Dict[str, Any]] = None
    filename: Optional[str] = None


# Endpoints

@router.get("/security-info")
async def get_security_info():
    """Describe the encryption scheme (public, no token required)."""
    return EnvelopeVaultService.get_security_info()


@router.post("/links", response_model=LinkResponse)
async def create_link(
    container: Dict[str, Any],
    token: str = Depends(verify_session_token),
    codec: ShareableLinkCodec = Depends(get_link_codec),
):
    """
    Build a shareable link from a vault container (unified or legacy shape).

    Legacy containers are normalized; the link always carries the unified shape.
    """
    try:
        parsed = EncryptedContainer.from_dict(container)
    except InvalidLinkFormat as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{e.user_message} ({e})"
        )

    return LinkResponse(
        link=codec.encode(parsed),
        filename=codec.export_filename(parsed),
        account=parsed.recipient,
    )


@router.post("/links/parse", response_model=ParseLinkResponse)
async def parse_link(
    request: ParseLinkRequest,
    token: str = Depends(verify_session_token),
    codec: ShareableLinkCodec = Depends(get_link_codec),
):
    """
    Parse a pasted link. ``valid: false`` means "not a vault link", which is
    distinct from a vault that later fails to decrypt.
    """
    container = codec.decode(request.link)
    if container is None:
        return ParseLinkResponse(valid=False)

    return ParseLinkResponse(
        valid=True,
        container=container.to_dict(),
        filename=codec.export_filename(container),
    )
