"""FastAPI application exposing the market service."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from holomarket.constants import MarketImpact
from holomarket.server.websocket import WebSocketSubscriber
from holomarket.service import MarketService

logger = logging.getLogger(__name__)


class NewsEventRequest(BaseModel):
    """Externally supplied news event to apply to the market."""

    title: str
    symbols: list[str] = Field(min_length=1)
    impact: MarketImpact


def create_app(service: MarketService, manage_lifecycle: bool = True) -> FastAPI:
    """
    Build the app around an already constructed service.

    With manage_lifecycle the app initializes, starts and closes the service.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if manage_lifecycle:
            await service.initialize()
            await service.start()
        try:
            yield
        finally:
            if manage_lifecycle:
                await service.close()

    app = FastAPI(title="HoloMarket", lifespan=lifespan)
    app.state.service = service

    @app.get("/api/corporations")
    async def list_corporations():
        try:
            instruments = await service.list_instruments()
            return [i.to_dict() for i in instruments]
        except Exception as e:
            logger.error(f"Error fetching corporations: {e}")
            return JSONResponse(status_code=500, content={"message": "Failed to fetch corporations"})

    @app.get("/api/market/summary")
    async def market_summary():
        summary = await service.summary()
        return summary.to_dict()

    @app.get("/api/news")
    async def recent_news():
        return [event.to_dict() for event in service.news.recent_events]

    @app.post("/api/market/events")
    async def trigger_market_event(request: NewsEventRequest):
        batch = await service.trigger_news_event(request.title, request.symbols, request.impact)
        if batch is None:
            return JSONResponse(status_code=500, content={"message": "Failed to apply market event"})
        return batch.to_message()

    @app.websocket(service.config.server.websocket_path)
    async def market_socket(websocket: WebSocket):
        await websocket.accept()
        subscriber = WebSocketSubscriber(websocket)
        service.register(subscriber)
        logger.info("Client connected to WebSocket")

        try:
            while True:
                message = await websocket.receive_text()
                await _handle_client_message(subscriber, message)
        except WebSocketDisconnect:
            logger.info("Client disconnected from WebSocket")
        finally:
            subscriber.notify_closed()

    return app


async def _handle_client_message(subscriber: WebSocketSubscriber, message: str) -> None:
    try:
        data = json.loads(message)
        message_type = data.get("type")
    except (json.JSONDecodeError, AttributeError) as e:
        logger.warning(f"WebSocket message error: {e}")
        return

    if message_type == "ping":
        await subscriber.send(json.dumps({"type": "pong"}))
    else:
        logger.info(f"Unknown WebSocket message type: {message_type}")
