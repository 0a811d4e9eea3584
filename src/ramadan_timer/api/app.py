"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ramadan_timer import __version__
from ramadan_timer.api.dependencies import (
    initialize_app_state,
    load_initial_times,
    shutdown_app_state,
)
from ramadan_timer.api.routes import router as api_router
from ramadan_timer.config import AppConfig
from ramadan_timer.services.ports import KeyValueStorePort

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    logger.info("Ramadan Timer starting...")

    state = await initialize_app_state(
        config=getattr(app.state, "config", None),
        store=getattr(app.state, "store", None),
    )

    state.scheduler_adapter.start()
    await load_initial_times(state)
    state.timer_service.start()

    logger.info("Ramadan Timer ready!")

    yield

    # Shutdown
    logger.info("Ramadan Timer shutting down...")
    await shutdown_app_state()
    logger.info("Ramadan Timer stopped.")


def create_app(
    config: AppConfig | None = None,
    store: KeyValueStorePort | None = None,
) -> FastAPI:
    """
    Create FastAPI application.

    Args:
        config: Configuration (environment by default)
        store: Persisted state override, e.g. an InMemoryStateStore

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Ramadan Timer",
        description="Sehri and Iftar countdown with local reminders",
        version=__version__,
        lifespan=lifespan,
    )

    # Store config in app state
    app.state.config = config
    app.state.store = store

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # API routes
    app.include_router(api_router, prefix="/api")

    # Health check
    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    return app
