"""Market simulation engine."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from holomarket.config_loader import SimulationConfig
from holomarket.market.hub import BroadcastHub
from holomarket.market.models import Instrument, PriceUpdate, UpdateBatch
from holomarket.market.volatility import volatility_for_sector
from holomarket.store.base import InstrumentStore

logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    """Subset of random.Random the simulation draws from."""

    def random(self) -> float: ...

    def uniform(self, a: float, b: float) -> float: ...


def tick_volume(
    change_percent: float, draw: float, base_volume: int, sensitivity: float
) -> int:
    """Volume grows with the size of the move and a random factor in [0.5, 1.5)."""
    return round(base_volume * (1 + abs(change_percent) * sensitivity) * (0.5 + draw))


class MarketSimulationEngine:
    """
    Advances every instrument by one random-walk step on a fixed interval
    and hands each batch to the broadcast hub.

    Only one tick runs at a time. The write lock is shared with the shock
    path so read-compute-write on an instrument is never interleaved.
    """

    def __init__(
        self,
        store: InstrumentStore,
        hub: BroadcastHub,
        config: SimulationConfig | None = None,
        volatility: Callable[[str | None], float] = volatility_for_sector,
        rng: RandomSource | None = None,
    ):
        self.store = store
        self.hub = hub
        self.config = config or SimulationConfig()
        self.volatility = volatility
        self.rng: RandomSource = rng or random.Random()
        self.write_lock = asyncio.Lock()
        self.tick_count = 0

        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the recurring tick. A second call while running is a no-op."""
        if self.is_running:
            return

        self._stop_event = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"Market simulation started (every {self.config.interval_seconds}s)")

    async def stop(self) -> None:
        """Stop scheduling ticks. A tick already in progress runs to completion."""
        if self._task is None:
            return

        self._stop_event.set()
        await self._task
        self._task = None
        logger.info("Market simulation stopped")

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(), timeout=self.config.interval_seconds
                )
                break
            except TimeoutError:
                pass

            try:
                await self.tick()
            except Exception as e:
                logger.error(f"Market simulation error: {e}", exc_info=True)

    async def tick(self) -> UpdateBatch | None:
        """
        Run one simulation step over every instrument and broadcast the result.

        Returns the batch, or None when the instrument list could not be read.
        """
        async with self.write_lock:
            try:
                instruments = await self.store.list_all()
            except Exception as e:
                logger.error(f"Failed to load instruments for tick: {e}")
                return None

            updates = []
            for instrument in instruments:
                new_price = self.next_price(instrument)
                update = await self.commit_price(instrument, new_price, volume=None)
                if update is not None:
                    updates.append(update)

        self.tick_count += 1
        batch = UpdateBatch(updates=tuple(updates), timestamp=datetime.now(timezone.utc))
        self.publish(batch)
        return batch

    def next_price(self, instrument: Instrument) -> Decimal:
        """Draw one bounded random move for an instrument."""
        r = self.rng.uniform(-1.0, 1.0)
        max_move = self.volatility(instrument.sector)
        delta = Decimal(str(r * max_move)) * instrument.price
        return self.clamp_price(instrument.price + delta)

    def clamp_price(self, price: Decimal) -> Decimal:
        """Quantize to monetary precision, never below the floor price."""
        floor = self.config.floor_price
        quantized = price.quantize(self.config.price_quantum, rounding=ROUND_HALF_UP)
        return max(floor, quantized)

    async def commit_price(
        self, instrument: Instrument, new_price: Decimal, volume: int | None
    ) -> PriceUpdate | None:
        """
        Persist a new price and build its update.

        Caller must hold write_lock. When volume is None it is derived from the
        move. Returns None (and logs) if the store rejects the write.
        """
        old_price = instrument.price
        if old_price <= 0:
            logger.warning(f"Skipping {instrument.symbol}: stored price {old_price} is not positive")
            return None

        change_percent = (new_price - old_price) / old_price * 100
        if volume is None:
            volume = tick_volume(
                float(change_percent),
                self.rng.random(),
                self.config.base_volume,
                self.config.volume_sensitivity,
            )

        try:
            await self.store.update_price(instrument.id, new_price, change_percent, volume)
        except Exception as e:
            logger.warning(f"Skipping {instrument.symbol}: price update failed: {e}")
            return None

        return PriceUpdate(
            instrument_id=instrument.id,
            symbol=instrument.symbol,
            new_price=new_price,
            change_24h=change_percent,
            volume=volume,
        )

    def publish(self, batch: UpdateBatch) -> None:
        """Hand a batch to the hub exactly once."""
        self.hub.broadcast(batch)
