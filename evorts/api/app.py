"""FastAPI application factory with lifespan management."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from evorts.api.dependencies import set_engine_manager
from evorts.api.engine_manager import EngineManager
from evorts.api.routes import api_router
from evorts.config import SimulationConfig
from evorts.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def create_app(config: SimulationConfig | None = None, autostart: bool = True) -> FastAPI:
    """Build and return the fully-configured FastAPI application."""
    if config is None:
        config = SimulationConfig()

    _config = config

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        setup_logging(_config.log_level)
        manager = EngineManager(_config)
        set_engine_manager(manager)
        if autostart:
            manager.start()
        logger.info("API server started (simulation %s).", "running" if autostart else "stopped")
        yield
        manager.stop()
        set_engine_manager(None)
        logger.info("API server shutting down.")

    app = FastAPI(
        title="EvoRTS Simulation",
        description=(
            "Real-time strategy simulation core: read and control API.\n\n"
            "## API Groups\n\n"
            "- **State** - Live units, resources, base stockpile and events\n"
            "- **Map** - Static terrain grid (fetch once at startup)\n"
            "- **Control** - Simulation lifecycle: start, pause, resume, step, reset, speed\n"
            "- **Config** - Simulation configuration and scheduler metrics\n"
        ),
        version="0.1.0",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "State", "description": "Live simulation state: units, resources, base, events and per-unit memory."},
            {"name": "Map", "description": "Terrain grid data. The cave layout does not change during a run."},
            {"name": "Control", "description": "Simulation lifecycle controls and tick rate / time scale."},
            {"name": "Config", "description": "Read-only configuration and scheduler performance metrics."},
        ],
    )

    # CORS: allow any origin in dev
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    return app
