"""WebSocket adapter implementing the hub's Subscriber contract."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from holomarket.market.hub import Subscriber

logger = logging.getLogger(__name__)


class WebSocketSubscriber(Subscriber):
    """Wraps an accepted FastAPI WebSocket. Writes are serialized per socket."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self._send_lock = asyncio.Lock()
        self._close_callbacks: list[Callable[[], None]] = []
        self._closed = False

    @property
    def is_open(self) -> bool:
        return (
            not self._closed
            and self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send(self, text: str) -> bool:
        async with self._send_lock:
            await self.websocket.send_text(text)
        return True

    def on_close(self, callback: Callable[[], None]) -> None:
        self._close_callbacks.append(callback)

    def notify_closed(self) -> None:
        """Called by the endpoint once the socket is gone."""
        if self._closed:
            return
        self._closed = True
        for callback in self._close_callbacks:
            try:
                callback()
            except Exception as e:
                logger.warning(f"Close callback failed: {e}")
