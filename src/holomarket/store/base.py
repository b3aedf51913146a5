"""Base instrument store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from holomarket.market.models import Instrument


class InstrumentStore(ABC):
    """
    Durable record of tradeable instruments.

    Every call may fail independently with StoreError. A single
    update_price call writes price, change and volume as one unit.
    """

    async def initialize(self) -> None:
        """Prepare the backend (schema, connections)."""

    async def close(self) -> None:
        """Release backend resources."""

    @abstractmethod
    async def list_all(self) -> list[Instrument]:
        """All instruments in natural enumeration order (by symbol)."""
        pass

    @abstractmethod
    async def get(self, instrument_id: int) -> Instrument:
        """Fetch one instrument. Raises InstrumentNotFoundError."""
        pass

    @abstractmethod
    async def update_price(
        self,
        instrument_id: int,
        new_price: Decimal,
        change_percent: Decimal,
        volume: int | None = None,
    ) -> None:
        """Persist a new price and 24h change (and volume, when given)."""
        pass

    @abstractmethod
    async def upsert(self, instrument: Instrument) -> Instrument:
        """Insert or replace an instrument by symbol. Ids <= 0 are assigned by the store."""
        pass
