# Wallet Vault - Local FastAPI backend
#
# Binds to localhost by default. Serves link building/parsing for a local
# client; never holds keys and never persists containers.

import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..core import get_settings
from .vault_routes import router as vault_router

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Wallet Vault API",
    description="Wallet-bound envelope encryption for API keys",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[get_settings().link_origin],
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "X-Session-Token"],
)

app.include_router(vault_router)


@app.get("/health")
async def health():
    return {"status": "ok", "version": __version__}


def start_api_server(host: str = "127.0.0.1", port: int = 8000):
    """
    Start FastAPI server.

    Args:
        host: Host to bind to (default: localhost only)
        port: Port to listen on
    """
    uvicorn.run(app, host=host, port=port, log_level="info")
