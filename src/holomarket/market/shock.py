"""Event-triggered market shocks."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from decimal import Decimal

from holomarket.config_loader import ShockConfig
from holomarket.constants import MarketImpact
from holomarket.market.engine import MarketSimulationEngine, RandomSource
from holomarket.market.models import UpdateBatch

logger = logging.getLogger(__name__)


def draw_multiplier(impact: MarketImpact, rng: RandomSource, config: ShockConfig) -> float:
    """Price multiplier for one targeted instrument."""
    if impact == MarketImpact.POSITIVE:
        return 1 + rng.uniform(config.min_move, config.max_move)
    if impact == MarketImpact.NEGATIVE:
        return 1 - rng.uniform(config.min_move, config.max_move)
    return 1 + rng.uniform(-config.mixed_band, config.mixed_band)


class MarketShock:
    """
    Applies a one-off directional move to a named set of instruments.

    Shares the engine's write lock, store commit and broadcast, so a shock
    and a regular tick never interleave on the same instrument.
    """

    def __init__(self, engine: MarketSimulationEngine, config: ShockConfig | None = None):
        self.engine = engine
        self.config = config or ShockConfig()

    def _draw_volume(self) -> int:
        return int(self.config.base_volume + self.engine.rng.random() * self.config.volume_spread)

    async def trigger(
        self,
        symbols: Iterable[str],
        impact: MarketImpact | str,
        label: str = "",
    ) -> UpdateBatch | None:
        """
        Re-price the targeted instruments and broadcast the batch.

        Instruments outside the target set are left untouched. Returns None
        if the instrument list could not be read.

        Raises:
            ValueError: If impact is not positive, negative or mixed.
        """
        impact = MarketImpact(impact)
        targets = {s.upper() for s in symbols}

        async with self.engine.write_lock:
            try:
                instruments = await self.engine.store.list_all()
            except Exception as e:
                logger.error(f"Error triggering news event '{label}': {e}")
                return None

            updates = []
            for instrument in instruments:
                if instrument.symbol.upper() not in targets:
                    continue

                multiplier = draw_multiplier(impact, self.engine.rng, self.config)
                new_price = self.engine.clamp_price(instrument.price * Decimal(str(multiplier)))
                update = await self.engine.commit_price(
                    instrument, new_price, volume=self._draw_volume()
                )
                if update is not None:
                    updates.append(update)

        batch = UpdateBatch(
            updates=tuple(updates), timestamp=datetime.now(timezone.utc), label=label or None
        )
        self.engine.publish(batch)
        logger.info(
            f"Market event triggered: {label} - Affected {len(updates)} corporations ({impact.value})"
        )
        return batch
