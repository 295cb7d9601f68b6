"""FastAPI application setup for Design Sync."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from design_sync.api.routes_admin import router as admin_router
from design_sync.api.routes_live import IndexRenderer
from design_sync.api.routes_live import router as live_router
from design_sync.core.logging import configure_logging
from design_sync.service import DesignSyncService

__version__ = "0.1.0"


def create_app(service: DesignSyncService, renderer: IndexRenderer | None = None) -> FastAPI:
    """Build the gallery app bound to one workspace."""

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        service.registry.stop(service.layout.assets_dir)

    app = FastAPI(
        title="Design Sync",
        version=__version__,
        docs_url="/docs",
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.service = service
    app.state.renderer = renderer

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.include_router(live_router, prefix="", tags=["live"])
    app.include_router(admin_router, prefix="", tags=["admin"])

    @app.get("/health", tags=["admin"])
    def health() -> dict[str, bool]:
        """Simple liveness check."""
        return {"ok": True}

    return app


def create_default_app() -> FastAPI:
    """Factory for ``uvicorn --factory design_sync.app:create_default_app``."""
    configure_logging()
    return create_app(DesignSyncService())


__all__ = ["create_app", "create_default_app"]
