"""Data models for generated news events."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from holomarket.constants import MarketImpact, Urgency


@dataclass
class NewsEvent:
    """Galaxy-wide news item with its expected market effect."""

    title: str
    description: str
    urgency: Urgency = Urgency.MEDIUM
    market_impact: MarketImpact = MarketImpact.MIXED
    affected_symbols: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    is_fallback: bool = False
    raw_response: str = ""  # For debugging
    latency_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "eventType": "news",
            "urgency": self.urgency.value,
            "marketImpact": self.market_impact.value,
            "affectedSymbols": list(self.affected_symbols),
            "createdAt": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class FallbackNews:
    """Canned event used when generation is unavailable."""

    title: str
    description: str
    urgency: Urgency
    market_impact: MarketImpact
    sectors: tuple[str, ...]


FALLBACK_NEWS = (
    FallbackNews(
        title="Corporate Sector Authority Expansion",
        description=(
            "CSA forces have established new checkpoints across three Outer Rim systems. "
            "Trade routes through Bonadan and Ammuud now require additional permits, "
            "causing market volatility."
        ),
        urgency=Urgency.MEDIUM,
        market_impact=MarketImpact.MIXED,
        sectors=("shipping", "financial"),
    ),
    FallbackNews(
        title="Hutt Cartel Territory Dispute",
        description=(
            "Fighting has broken out between rival Hutt clans over control of spice routes. "
            "Several shipping lanes have been temporarily closed, affecting galactic commerce."
        ),
        urgency=Urgency.HIGH,
        market_impact=MarketImpact.NEGATIVE,
        sectors=("shipping", "mining"),
    ),
)
