"""In-memory instrument store."""

from __future__ import annotations

import dataclasses
import itertools
import logging
from datetime import datetime
from decimal import Decimal

from holomarket.exceptions import InstrumentNotFoundError
from holomarket.market.models import Instrument
from holomarket.store.base import InstrumentStore

logger = logging.getLogger(__name__)


class MemoryInstrumentStore(InstrumentStore):
    """
    Dict-backed store for simulation runs and tests.

    Records are immutable; each write swaps the whole record in a single
    assignment, so readers never see a half-applied update.
    """

    def __init__(self, instruments: list[Instrument] | None = None):
        self._instruments: dict[int, Instrument] = {}
        self._ids = itertools.count(1)
        for instrument in instruments or []:
            self._insert_sync(instrument)

    async def list_all(self) -> list[Instrument]:
        return sorted(self._instruments.values(), key=lambda i: i.symbol)

    async def get(self, instrument_id: int) -> Instrument:
        try:
            return self._instruments[instrument_id]
        except KeyError:
            raise InstrumentNotFoundError(instrument_id) from None

    async def update_price(
        self,
        instrument_id: int,
        new_price: Decimal,
        change_percent: Decimal,
        volume: int | None = None,
    ) -> None:
        current = await self.get(instrument_id)
        changes = {"price": new_price, "change_24h": change_percent, "updated_at": datetime.now()}
        if volume is not None:
            changes["volume"] = volume
        self._instruments[instrument_id] = dataclasses.replace(current, **changes)

    async def upsert(self, instrument: Instrument) -> Instrument:
        return self._insert_sync(instrument)

    def _insert_sync(self, instrument: Instrument) -> Instrument:
        existing = next(
            (i for i in self._instruments.values() if i.symbol == instrument.symbol), None
        )
        if existing is not None:
            instrument = dataclasses.replace(instrument, id=existing.id)
        elif instrument.id <= 0:
            instrument = dataclasses.replace(instrument, id=self._next_id())
        self._instruments[instrument.id] = instrument
        logger.debug(f"Stored instrument {instrument.symbol} (id={instrument.id})")
        return instrument

    def _next_id(self) -> int:
        while True:
            candidate = next(self._ids)
            if candidate not in self._instruments:
                return candidate
