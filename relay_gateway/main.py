"""
Relay Gateway main application.

Real-time chat relay: clients connect over WebSocket, send messages and
presence updates, and receive acknowledgments plus every other client's
activity. Also serves health checks and upload authorization.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from relay_gateway import __version__
from relay_gateway.components.endpoints.handlers import RelayEndpoint
from relay_gateway.connection_manager import ConnectionManager
from relay_shared.config.logging import relay_gateway_logger as logger, setup_logging
from relay_shared.config.settings import Settings, settings as default_settings
from relay_shared.integrations.upload_auth import (
    ImageKitUploadAuthorizer,
    UploadAuthError,
    UploadAuthorizer,
    describe_credentials,
)


def create_app(
    settings: Settings | None = None,
    manager: ConnectionManager | None = None,
    upload_authorizer: UploadAuthorizer | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Each app owns its ConnectionManager, so tests can run isolated apps
    side by side.
    """
    settings = settings or default_settings
    manager = manager or ConnectionManager(settings)
    upload_authorizer = upload_authorizer or ImageKitUploadAuthorizer.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging()
        logger.info(
            "Starting relay gateway",
            port=settings.port,
            env=settings.environment,
        )
        for problem in settings.validate_production_secrets():
            logger.warning("Configuration problem", problem=problem)

        yield

        logger.info("Shutting down relay gateway")
        closed = await manager.shutdown()
        logger.info("Closed open connections", count=closed)

    app = FastAPI(
        title="Chat Relay Gateway",
        description="Real-time chat message relay",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.manager = manager
    app.state.upload_authorizer = upload_authorizer

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_origins != ["*"],
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get("/health")
    def health_check():
        """Basic health check endpoint."""
        try:
            stats = manager.get_stats_sync()
            connections = stats["total_connections"]
        except Exception as e:
            logger.warning("Failed to get stats in health check", error=str(e))
            connections = None
        return {
            "status": "ok",
            "service": "chat-relay",
            "version": app.version,
            "environment": settings.environment,
            "connections": connections,
        }

    @app.get("/health/detailed")
    async def detailed_health_check():
        """Health check with connection and delivery statistics."""
        return {
            "status": "ok",
            "service": "chat-relay",
            "version": app.version,
            "environment": settings.environment,
            "connections": await manager.get_stats(),
        }

    # =========================================================================
    # Upload authorization
    # =========================================================================

    @app.get("/api/upload-auth")
    @app.get("/api/imagekit-auth", include_in_schema=False)
    def upload_auth(request: Request):
        """Signed credentials for a direct media upload."""
        authorizer: UploadAuthorizer = request.app.state.upload_authorizer
        try:
            return authorizer.get_upload_authorization()
        except UploadAuthError as e:
            logger.error("Upload authorization failed", error=str(e))
            return JSONResponse(
                status_code=500,
                content={"error": "Auth failed", "message": str(e)},
            )

    @app.get("/debug/credentials")
    def debug_credentials():
        """Which upload credentials are configured (never their values)."""
        return describe_credentials(settings)

    # =========================================================================
    # WebSocket endpoints
    # =========================================================================

    @app.websocket("/")
    @app.websocket("/ws")
    async def relay_websocket(websocket: WebSocket):
        """WebSocket endpoint for chat clients."""
        endpoint = RelayEndpoint(websocket, manager, endpoint_name=websocket.url.path)
        await endpoint.run()

    # =========================================================================
    # Error handler
    # =========================================================================

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled error",
            path=request.url.path,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "message": str(exc)},
        )

    return app


app = create_app()


def main() -> None:
    """Run the gateway with uvicorn."""
    import uvicorn

    uvicorn.run(
        "relay_gateway.main:app",
        host=default_settings.host,
        port=default_settings.port,
    )


if __name__ == "__main__":
    main()
