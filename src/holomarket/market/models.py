"""Market data structures and types."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from holomarket.constants import MARKET_UPDATE_MESSAGE_TYPE


def parse_decimal(value: Any) -> Decimal | None:
    """Parse a stored decimal, returning None for missing or unparseable values."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return parsed if parsed.is_finite() else None


@dataclass(frozen=True)
class Instrument:
    """Tradeable corporation with a price series."""

    id: int
    symbol: str
    name: str
    price: Decimal
    sector: str = "general"
    change_24h: Decimal = Decimal("0")
    volume: int = 0
    market_cap: Decimal | None = None
    description: str = ""
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly representation (camelCase, as served to clients)."""
        return {
            "id": self.id,
            "symbol": self.symbol,
            "name": self.name,
            "description": self.description,
            "sector": self.sector,
            "price": str(self.price),
            "change24h": str(self.change_24h),
            "volume": self.volume,
            "marketCap": str(self.market_cap) if self.market_cap is not None else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class PriceUpdate:
    """One instrument's movement within a batch."""

    instrument_id: int
    symbol: str
    new_price: Decimal
    change_24h: Decimal
    volume: int

    def to_wire(self) -> dict[str, Any]:
        return {
            "corporationId": self.instrument_id,
            "symbol": self.symbol,
            "newPrice": float(self.new_price),
            "change24h": float(self.change_24h),
            "volume": self.volume,
        }


@dataclass(frozen=True)
class UpdateBatch:
    """Ordered price updates produced by one tick or one shock: the unit of broadcast."""

    updates: tuple[PriceUpdate, ...]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    label: str | None = None

    def __len__(self) -> int:
        return len(self.updates)

    def to_message(self) -> dict[str, Any]:
        return {
            "type": MARKET_UPDATE_MESSAGE_TYPE,
            "data": [u.to_wire() for u in self.updates],
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_message())


@dataclass(frozen=True)
class SummaryEntry:
    """Instrument projection used in the market summary rankings."""

    symbol: str
    change: Decimal
    volume: int
    market_cap: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "change": float(self.change),
            "volume": self.volume,
            "marketCap": float(self.market_cap),
        }


@dataclass(frozen=True)
class MarketSummary:
    """On-demand aggregate view of the market."""

    total_market_cap: Decimal = Decimal("0")
    top_gainers: tuple[SummaryEntry, ...] = ()
    top_losers: tuple[SummaryEntry, ...] = ()
    highest_volume: tuple[SummaryEntry, ...] = ()

    @classmethod
    def empty(cls) -> MarketSummary:
        return cls()

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalMarketCap": float(self.total_market_cap),
            "topGainers": [e.to_dict() for e in self.top_gainers],
            "topLosers": [e.to_dict() for e in self.top_losers],
            "highestVolume": [e.to_dict() for e in self.highest_volume],
        }
