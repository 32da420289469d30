"""
FastAPI Application Factory.

Creates the app the external HTTP server mounts. The app itself does not
open sockets; run_server() hands it to uvicorn.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .. import __version__
from ..core.logging import get_logger
from ..errors import InvalidInput, RequestRejected
from ..share import SharedLibrary
from .endpoints import health, profile


logger = get_logger(__name__)


def create_app(
    share: SharedLibrary,
    title: str = "Obscura Share API",
    version: str = __version__,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        share: The shared library to authenticate against
        title: API title
        version: API version

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await share.initialize()
        yield

    app = FastAPI(
        title=title,
        version=version,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.share = share

    @app.exception_handler(RequestRejected)
    async def handle_rejected(_request: Request, exc: RequestRejected) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": {"code": exc.code, "message": exc.message}},
        )

    @app.exception_handler(RequestValidationError)
    async def handle_invalid(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        message = errors[0]["msg"] if errors else "Invalid input"
        return await handle_rejected(request, InvalidInput(message))

    app.include_router(health.router, prefix="/api")
    app.include_router(profile.router, prefix="/api")

    return app


def run_server(share: SharedLibrary, host: str = "0.0.0.0", port: Optional[int] = None) -> None:
    """
    Run the API server with the shared server configuration.

    TLS is terminated by uvicorn using the configured certificate and key.
    """
    import asyncio

    import uvicorn

    asyncio.run(share.initialize())
    config = share.config.get_config()

    ssl_options = {}
    if config.ssl_cert_path and config.ssl_key_path:
        ssl_options = {
            "ssl_certfile": config.ssl_cert_path,
            "ssl_keyfile": config.ssl_key_path,
        }
    elif config.require_https:
        raise ValueError("HTTPS is required but no certificate/key paths are configured")

    logger.info("Starting share server", host=host, port=port or config.port, https=bool(ssl_options))
    uvicorn.run(
        create_app(share),
        host=host,
        port=port or config.port,
        limit_concurrency=config.max_connections,
        **ssl_options,
    )
