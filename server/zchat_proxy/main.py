"""
Proxy Server FastAPI Application

Exposes chat.z.ai as an OpenAI-compatible chat completion API.
Uses modular router architecture.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn
from loguru import logger

from .shared.core.config import Settings
from .shared.core.connection_manager import ConnectionManager
from .shared.core.dependencies import get_settings, verify_api_key
from .shared.core.exceptions import APIError, AuthenticationError
from .shared.core.logging import configure_logging
from .shared.middleware import add_monitoring_middleware
from .shared.models.responses import ErrorDetail, ErrorResponse
from .shared.api import health
from .web_api import router as web_router
from .direct_api import router as direct_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Creates the pooled upstream HTTP client at startup and closes it at shutdown.
    Request state never lives here.
    """
    settings = app.state.settings
    logger.info(f"Starting {settings.app_name} {settings.version} -> {settings.upstream_base_url}")
    if not settings.api_key:
        logger.warning("API_KEY not set: any key of the form sk-... is accepted")
    logger.debug(f"Settings: {settings.to_dict()}")

    conn_manager = ConnectionManager(settings)
    await conn_manager.initialize()
    app.state.connection_manager = conn_manager

    yield

    logger.info("Shutting down proxy server...")
    await conn_manager.close()
    logger.info("Proxy server shut down gracefully")


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(message=exc.detail))
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(exclude_none=True),
        headers=exc.headers
    )


async def unrouted_request_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    404/405 for anything but the liveness route.
    The API key is checked first, so unauthenticated callers see 401 on every path.
    """
    if request.url.path != "/":
        try:
            await verify_api_key(request.app.state.settings, request.headers.get("Authorization"))
        except AuthenticationError as auth_error:
            return await api_error_handler(request, auth_error)
    return await http_exception_handler(request, exc)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg', 'invalid request')}" if location else first.get("msg", "invalid request")
    body = ErrorResponse(error=ErrorDetail(message=message, type="invalid_request_error"))
    return JSONResponse(status_code=422, content=body.model_dump())


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application."""
    if settings is None:
        settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="zchat-proxy",
        description="OpenAI-compatible proxy for the chat.z.ai web service",
        version=settings.version,
        lifespan=lifespan,
        docs_url="/docs" if settings.enable_docs else None,
        redoc_url="/redoc" if settings.enable_docs else None,
        openapi_url="/openapi.json" if settings.enable_docs else None,
    )
    app.state.settings = settings
    # Route dependencies must see the same settings the app was built with
    app.dependency_overrides[get_settings] = lambda: settings

    add_monitoring_middleware(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(404, unrouted_request_handler)
    app.add_exception_handler(405, unrouted_request_handler)

    app.include_router(health.router)
    app.include_router(web_router.router)
    app.include_router(direct_router.router)

    return app


app = create_app()


def main():
    """
    Main entry point for running the proxy server.
    For production, use gunicorn with uvicorn workers for better performance.
    """
    settings = get_settings()

    logger.info(f"Starting proxy server on {settings.host}:{settings.port}")
    logger.info(f"Environment: {settings.environment}, reload: {settings.reload}")

    uvicorn.run(
        "zchat_proxy.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
        access_log=True,
        loop="asyncio",
    )


if __name__ == "__main__":
    main()
