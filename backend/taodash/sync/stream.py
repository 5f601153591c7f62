"""HTTP boundary for the presentation layer: state, timeframe, visibility, SSE."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from .engine import SyncEngine
from .models import Timeframe

logger = logging.getLogger(__name__)


class TimeframeSelection(BaseModel):
    timeframe: str | int


class VisibilitySignal(BaseModel):
    visible: bool


def create_dashboard_router(engine: SyncEngine) -> APIRouter:
    """Build a router whose endpoints all read from and drive `engine`."""
    router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

    @router.get("/state")
    async def get_state() -> dict:
        return engine.get_view_model().to_dict()

    @router.get("/timeframes")
    async def list_timeframes() -> list[dict]:
        return [{"label": tf.label, "days": tf.days} for tf in Timeframe]

    @router.post("/timeframe")
    async def select_timeframe(selection: TimeframeSelection) -> dict:
        try:
            engine.select_timeframe(selection.timeframe)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e
        return engine.get_view_model().to_dict()

    @router.post("/visibility")
    async def set_visibility(signal: VisibilitySignal) -> dict:
        await engine.set_visible(signal.visible)
        return {"visible": engine.visible}

    @router.get("/stream")
    async def stream_state(request: Request) -> StreamingResponse:
        """Server-sent view models for the chart page.

            data: {"snapshot": {...}, "series": [[ts, price], ...], ...}
        """
        return StreamingResponse(
            _generate_events(engine, request),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",
            },
        )

    return router


async def _generate_events(
    engine: SyncEngine,
    request: Request,
    interval: float = 0.5,
) -> AsyncGenerator[str, None]:
    """Emit the view model as SSE frames: once on connect, then after each engine change.

    Between changes the stream idles on a subscription wakeup; `interval` caps
    how long it idles before rechecking whether the client went away.
    """
    yield "retry: 1000\n\n"

    changed = asyncio.Event()
    unsubscribe = engine.subscribe(lambda _view: changed.set())
    peer = request.client.host if request.client else "unknown"
    sent_version: int | None = None
    logger.info("Dashboard stream opened: %s", peer)

    try:
        while not await request.is_disconnected():
            changed.clear()
            if engine.version != sent_version:
                sent_version = engine.version
                yield f"data: {json.dumps(engine.get_view_model().to_dict())}\n\n"
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(changed.wait(), timeout=interval)
    finally:
        unsubscribe()
        logger.info("Dashboard stream closed: %s", peer)
