"""Main FastAPI application for Vidvault."""

from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app
from vidvault import __version__
from vidvault.config import settings
from vidvault.db import Database
from vidvault.errors import register_exception_handlers
from vidvault.logging_config import logger
from vidvault.ratelimit import limiter
# Import routers
from vidvault.auth.routes import router as auth_router
from vidvault.video.routes import router as video_router


def create_app(database: Optional[Database] = None) -> FastAPI:
    """Build the application.

    Args:
        database: Pre-built data-access handle; one is created from settings
            at startup when omitted.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info("Starting Vidvault API", version=__version__)
        app.state.database = database or Database.from_settings()
        await app.state.database.connect()
        logger.info("Application startup complete")

        yield

        logger.info("Shutting down Vidvault API")
        await app.state.database.dispose()
        logger.info("Application shutdown complete")

    app = FastAPI(
        title="Vidvault API",
        description="Accounts and video upload/status tracking",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.state.limiter = limiter
    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        """Health check endpoint for container orchestration."""
        return {
            "status": "healthy",
            "version": __version__,
            "features": {
                "enforce_status_transitions": settings.enforce_status_transitions,
                "extract_video_metadata": settings.extract_video_metadata,
            },
        }

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "Vidvault API",
            "version": __version__,
            "docs": "/docs" if settings.debug else None,
        }

    if settings.enable_prometheus:
        app.mount("/metrics", make_asgi_app())

    app.include_router(auth_router, prefix="/api/auth", tags=["Authentication"])
    app.include_router(video_router, prefix="/videos", tags=["Video Processing"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "vidvault.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
