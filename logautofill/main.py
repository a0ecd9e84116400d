"""FastAPI entrypoint for the log sync service."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from .api import health, session
from .pipeline.config.settings import Settings, get_settings
from .pipeline.service.orchestrator import SyncOrchestrator
from .pipeline.sheets.sheet_client import SheetClient


def create_app(
    orchestrator: Optional[SyncOrchestrator] = None,
    settings: Optional[Settings] = None,
    refresh_on_startup: bool = True,
) -> FastAPI:
    """Build and configure the FastAPI application."""

    settings = settings or get_settings()
    orchestrator = orchestrator or SyncOrchestrator(
        store=SheetClient(settings=settings), settings=settings
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if refresh_on_startup:
            logger.info("Loading history from the sheet export")
            await orchestrator.refresh_history()
        yield

    app = FastAPI(
        title="LogAutoFill Sync Service",
        description=(
            "HTTP API for handwritten equipment log extraction, review and "
            "spreadsheet sync"
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.orchestrator = orchestrator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(session.router)

    @app.get("/")
    async def root():  # pragma: no cover - simple info endpoint
        return {
            "service": "logautofill",
            "docs": "/docs",
            "endpoints": {
                "health": "/api/health",
                "session": "/api/session",
                "history": "/api/history",
            },
        }

    return app


def run_dev() -> None:
    """Helper to start the service in development."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "logautofill.main:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
    )


if __name__ == "__main__":
    run_dev()
