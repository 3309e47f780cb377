"""
Main FastAPI application entry point.

Uses Application Factory Pattern; the DI container lives on app.state.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from frappeur import __version__
from frappeur.config.settings import FrappeurConfig, get_settings
from frappeur.di.container import FrappeurContainer
from frappeur.domain.exceptions import FrappeurException
from frappeur.infrastructure.monitoring import get_logger, setup_logging
from frappeur.presentation.api.middleware import frappeur_exception_handler
from frappeur.presentation.api.middleware.metrics_middleware import (
    MetricsMiddleware,
)
from frappeur.presentation.api.middleware.request_id_middleware import (
    RequestIDMiddleware,
)
from frappeur.presentation.api.routes import (
    collections,
    health,
    indexing,
    mint,
    monitoring,
    webhooks,
)


def create_app(
    settings: Optional[FrappeurConfig] = None,
    container: Optional[FrappeurContainer] = None,
) -> FastAPI:
    """
    Application factory - creates and configures FastAPI app.

    Args:
        settings: Optional settings instance (for testing)
        container: Optional pre-built container (for testing)

    Returns:
        Configured FastAPI application
    """
    if settings is None:
        settings = container.settings if container else get_settings()

    setup_logging(level=settings.log_level, json_logs=settings.json_logs)
    logger = get_logger(__name__)

    logger.info(f"Creating Frappeur application (ENV={settings.environment})")

    if container is None:
        container = FrappeurContainer(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info("Starting Frappeur application...")
        await container.initialize()
        logger.info(
            f"Frappeur ready: {len(container.collection_registry.list_collections())}"
            f" collections, minting as {container.chain_client.identity}"
        )

        yield

        logger.info("Shutting down Frappeur application...")
        await container.shutdown()
        logger.info("Frappeur application shutdown complete")

    app = FastAPI(
        title="Frappeur API",
        description="Compressed NFT mint orchestrator for Solana",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.container = container

    # Middleware chain (last added runs first)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(FrappeurException, frappeur_exception_handler)

    app.include_router(health.router)
    app.include_router(mint.router, prefix="/api")
    app.include_router(indexing.router, prefix="/api")
    app.include_router(monitoring.router, prefix="/api")
    app.include_router(webhooks.router, prefix="/api")
    app.include_router(collections.router, prefix="/api")

    @app.get("/", tags=["health"])
    async def root():
        """Root endpoint."""
        return {
            "service": "Frappeur",
            "status": "running",
            "version": __version__,
            "description": "Compressed NFT mint orchestrator",
        }

    @app.get("/metrics", tags=["monitoring"])
    async def metrics():
        """Prometheus metrics in text exposition format."""
        return Response(
            content=generate_latest(),
            media_type=CONTENT_TYPE_LATEST,
        )

    logger.info("Frappeur application created successfully")
    return app


def get_app() -> FastAPI:
    """
    Create application instance.

    For uvicorn: uvicorn frappeur.main:get_app --factory
    """
    return create_app()


def main():
    """Run the application with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "frappeur.main:get_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )


if __name__ == "__main__":
    main()
