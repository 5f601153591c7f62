"""FastAPI application wiring a single SyncEngine to the dashboard router.

    uvicorn taodash.main:app
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from .sync import EngineConfig, SyncEngine, create_dashboard_router

logger = logging.getLogger(__name__)


def create_app(engine: SyncEngine | None = None) -> FastAPI:
    """Build the app. The engine starts with the app and is disposed on shutdown."""
    engine = engine or SyncEngine(EngineConfig.from_env())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        await engine.start()
        yield
        logger.info("Shutting down dashboard engine")
        await engine.dispose()

    app = FastAPI(title="TAO Price Dashboard", lifespan=lifespan)
    app.state.engine = engine
    app.include_router(create_dashboard_router(engine))
    return app


app = create_app()
