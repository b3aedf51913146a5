"""Periodic news generation driving market shocks."""

from __future__ import annotations

import asyncio
import logging
from collections import deque

from holomarket.market.models import UpdateBatch
from holomarket.market.shock import MarketShock
from holomarket.news.generator import NewsEventGenerator
from holomarket.news.models import NewsEvent
from holomarket.store.base import InstrumentStore

logger = logging.getLogger(__name__)

RECENT_EVENTS_LIMIT = 20


class NewsScheduler:
    """Generates a news event on a fixed interval and feeds it into the shock path."""

    def __init__(
        self,
        generator: NewsEventGenerator,
        store: InstrumentStore,
        shock: MarketShock,
        interval_seconds: float,
    ):
        self.generator = generator
        self.store = store
        self.shock = shock
        self.interval_seconds = interval_seconds
        self.recent_events: deque[NewsEvent] = deque(maxlen=RECENT_EVENTS_LIMIT)

        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"News scheduler started (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stop_event.set()
        await self._task
        self._task = None
        logger.info("News scheduler stopped")

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
                break
            except TimeoutError:
                pass

            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Error generating periodic news event: {e}", exc_info=True)

    async def run_once(self) -> tuple[NewsEvent, UpdateBatch | None]:
        """Generate one event and apply its market impact."""
        instruments = await self.store.list_all()
        event = await self.generator.generate(instruments)
        self.recent_events.appendleft(event)
        logger.info(f"Generated news event: {event.title}")

        if not event.affected_symbols:
            logger.info(f"News event '{event.title}' names no listed corporations, market unchanged")
            return event, None

        batch = await self.shock.trigger(event.affected_symbols, event.market_impact, event.title)
        return event, batch
