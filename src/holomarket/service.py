"""Market service: one explicitly constructed owner for the market core."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from holomarket.config_loader import AppConfig
from holomarket.constants import MarketImpact
from holomarket.market.engine import MarketSimulationEngine, RandomSource
from holomarket.market.hub import BroadcastHub, Subscriber
from holomarket.market.models import Instrument, MarketSummary, UpdateBatch
from holomarket.market.shock import MarketShock
from holomarket.market.summary import MarketSummaryAggregator
from holomarket.market.volatility import VolatilityPolicy
from holomarket.news.generator import NewsEventGenerator
from holomarket.news.scheduler import NewsScheduler
from holomarket.store.base import InstrumentStore
from holomarket.store.memory import MemoryInstrumentStore
from holomarket.store.sqlite import SqliteInstrumentStore

logger = logging.getLogger(__name__)


def build_store(config: AppConfig) -> InstrumentStore:
    """Create the configured instrument store backend."""
    if config.is_memory_store:
        return MemoryInstrumentStore()
    return SqliteInstrumentStore(config.store.database_path)


class MarketService:
    """
    Wires store, engine, hub, shock path, aggregator and news scheduler.

    Handlers receive this instance; nothing here is process-global.
    """

    def __init__(
        self,
        config: AppConfig,
        store: InstrumentStore | None = None,
        hub: BroadcastHub | None = None,
        rng: RandomSource | None = None,
        news_generator: NewsEventGenerator | None = None,
    ):
        self.config = config
        self.store = store or build_store(config)
        self.hub = hub or BroadcastHub()
        self.engine = MarketSimulationEngine(
            self.store,
            self.hub,
            config=config.simulation,
            volatility=VolatilityPolicy(config.volatility),
            rng=rng,
        )
        self.shock = MarketShock(self.engine, config.shock)
        self.aggregator = MarketSummaryAggregator(self.store)
        self.news = NewsScheduler(
            news_generator or NewsEventGenerator(config.openai),
            self.store,
            self.shock,
            interval_seconds=config.openai.news_interval_seconds,
        )

    async def initialize(self) -> None:
        await self.store.initialize()

    async def start(self) -> None:
        """Start the recurring simulation and news generation."""
        if self.config.simulation.autostart:
            self.engine.start()
        self.news.start()

    async def stop(self) -> None:
        await self.news.stop()
        await self.engine.stop()
        await self.hub.close()

    async def close(self) -> None:
        await self.stop()
        await self.store.close()

    def register(self, subscriber: Subscriber) -> bool:
        return self.hub.register(subscriber)

    async def trigger_news_event(
        self, label: str, symbols: Iterable[str], impact: MarketImpact | str
    ) -> UpdateBatch | None:
        return await self.shock.trigger(symbols, impact, label)

    async def summary(self) -> MarketSummary:
        return await self.aggregator.get_summary()

    async def list_instruments(self) -> list[Instrument]:
        return await self.store.list_all()
