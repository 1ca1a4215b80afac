"""
PartTrack API Server

Entry point for the FastAPI application.
"""

import structlog
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import router as api_router
from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import install_exception_handlers
from app.core.middleware import SecurityHeadersMiddleware

settings = get_settings()
log = structlog.get_logger()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="PartTrack",
        description="Multi-tenant tracking of parts across organizations and projects.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Middleware (order matters: outermost first)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE"],
        allow_headers=["Content-Type"],
    )

    install_exception_handlers(app)

    app.include_router(api_router)

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check(session: AsyncSession = Depends(get_session)):
        """Readiness check: the database answers a trivial query."""
        await session.execute(text("SELECT 1"))
        return {"status": "ready"}

    @app.on_event("startup")
    async def on_startup():
        log.info("PartTrack starting", environment=settings.environment)

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("PartTrack shutting down")

    return app


app = create_app()
