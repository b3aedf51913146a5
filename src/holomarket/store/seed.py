"""Load instrument seed data from YAML."""

from __future__ import annotations

import logging
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, field_validator

from holomarket.market.models import Instrument
from holomarket.store.base import InstrumentStore

logger = logging.getLogger(__name__)


class InstrumentSeed(BaseModel):
    """One corporation entry in a seed file."""

    symbol: str
    name: str
    price: Decimal
    sector: str = "general"
    description: str = ""
    change_24h: Decimal = Decimal("0")
    volume: int = 0
    market_cap: Decimal | None = None

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("Symbol must not be empty")
        return v

    @field_validator("price")
    @classmethod
    def validate_price(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError(f"Price must be positive, got: {v}")
        return v

    def to_instrument(self) -> Instrument:
        return Instrument(
            id=0,
            symbol=self.symbol,
            name=self.name,
            price=self.price,
            sector=self.sector,
            description=self.description,
            change_24h=self.change_24h,
            volume=self.volume,
            market_cap=self.market_cap,
        )


def load_seed_file(path: str | Path) -> list[Instrument]:
    """
    Parse a YAML seed file with a top-level ``corporations`` list.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        pydantic.ValidationError: If an entry is invalid.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Seed file not found: {path}")

    with open(path, encoding="utf-8") as f:
        raw: dict[str, Any] = yaml.safe_load(f) or {}

    return [InstrumentSeed.model_validate(e).to_instrument() for e in raw.get("corporations", [])]


async def seed_store(store: InstrumentStore, instruments: list[Instrument]) -> list[Instrument]:
    """Upsert instruments by symbol and return the stored records."""
    stored = []
    for instrument in instruments:
        stored.append(await store.upsert(instrument))
    logger.info(f"Seeded {len(stored)} corporations")
    return stored
