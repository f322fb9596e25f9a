"""
Dependency injection for FastAPI without global state.
"""
from typing import Annotated, Optional
from fastapi import Depends, Header, Request
from functools import lru_cache
import httpx
from loguru import logger

from .config import Settings
from .connection_manager import ConnectionManager
from .exceptions import AuthenticationError
from ..clients import UpstreamClient
from ..services.chat import ChatService
from ..services.session import SessionBootstrapper
from ..services.signing import Signer


BEARER_PREFIX = "Bearer "
API_KEY_PREFIX = "sk-"


# Configuration (cached at module level for efficiency)
@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Connection Dependencies (from app.state - shared resources)
async def get_connection_manager(request: Request) -> ConnectionManager:
    """
    Get connection manager from app state.
    This is the ONLY place where we access app.state.
    """
    if not hasattr(request.app.state, 'connection_manager'):
        raise RuntimeError("ConnectionManager not found in app.state. Is the app properly initialized?")
    return request.app.state.connection_manager


async def get_http_client(
    conn_manager: Annotated[ConnectionManager, Depends(get_connection_manager)]
) -> httpx.AsyncClient:
    """Get HTTP client from shared pool."""
    return await conn_manager.get_http_client()


# Service Dependencies (created per request, nothing shared between requests)
async def get_upstream_client(
    http_client: Annotated[httpx.AsyncClient, Depends(get_http_client)],
    settings: Annotated[Settings, Depends(get_settings)]
) -> UpstreamClient:
    return UpstreamClient(http_client, settings.upstream_base_url)


async def get_signer() -> Signer:
    return Signer()


async def get_session_bootstrapper(
    upstream: Annotated[UpstreamClient, Depends(get_upstream_client)],
    settings: Annotated[Settings, Depends(get_settings)]
) -> SessionBootstrapper:
    return SessionBootstrapper(upstream, settings)


async def get_chat_service(
    upstream: Annotated[UpstreamClient, Depends(get_upstream_client)],
    signer: Annotated[Signer, Depends(get_signer)]
) -> ChatService:
    return ChatService(upstream, signer)


# Authentication
async def verify_api_key(
    settings: Annotated[Settings, Depends(get_settings)],
    authorization: Annotated[Optional[str], Header()] = None
) -> str:
    """
    Validate the client's ``Authorization: Bearer sk-...`` header.

    Returns:
        The validated API key

    Raises:
        AuthenticationError: On a missing header, wrong scheme or bad key
    """
    if not authorization:
        raise AuthenticationError("Missing Authorization header")

    if not authorization.startswith(BEARER_PREFIX):
        raise AuthenticationError("Invalid Authorization header format. Expected: Bearer sk-...")

    api_key = authorization[len(BEARER_PREFIX):].strip()

    if not api_key.startswith(API_KEY_PREFIX):
        raise AuthenticationError("Invalid API key format. Expected: sk-...")

    if settings.api_key and api_key != settings.api_key:
        logger.warning("Rejected request with non-matching API key")
        raise AuthenticationError("Invalid API key")

    return api_key


# Type aliases for cleaner code in route handlers
SessionBootstrapperDep = Annotated[SessionBootstrapper, Depends(get_session_bootstrapper)]
ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]
