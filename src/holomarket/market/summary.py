"""Market summary aggregation."""

from __future__ import annotations

import logging
from decimal import Decimal

from holomarket.constants import SUMMARY_TOP_N
from holomarket.market.models import Instrument, MarketSummary, SummaryEntry, parse_decimal
from holomarket.store.base import InstrumentStore

logger = logging.getLogger(__name__)


def _entry(instrument: Instrument) -> SummaryEntry:
    return SummaryEntry(
        symbol=instrument.symbol,
        change=parse_decimal(instrument.change_24h) or Decimal("0"),
        volume=instrument.volume or 0,
        market_cap=parse_decimal(instrument.market_cap) or Decimal("0"),
    )


def summarize(instruments: list[Instrument], top_n: int = SUMMARY_TOP_N) -> MarketSummary:
    """
    Rank a snapshot of instruments.

    Sorting is stable, so equal values keep store order. Losers are listed
    worst first.
    """
    entries = [_entry(i) for i in instruments]

    by_change = sorted(entries, key=lambda e: e.change, reverse=True)
    worst_first = sorted(entries, key=lambda e: e.change)
    by_volume = sorted(entries, key=lambda e: e.volume, reverse=True)

    return MarketSummary(
        total_market_cap=sum((e.market_cap for e in entries), Decimal("0")),
        top_gainers=tuple(by_change[:top_n]),
        top_losers=tuple(worst_first[:top_n]),
        highest_volume=tuple(by_volume[:top_n]),
    )


class MarketSummaryAggregator:
    """Read-only projection over the current store snapshot. Never raises."""

    def __init__(self, store: InstrumentStore, top_n: int = SUMMARY_TOP_N):
        self.store = store
        self.top_n = top_n

    async def get_summary(self) -> MarketSummary:
        try:
            instruments = await self.store.list_all()
            return summarize(instruments, self.top_n)
        except Exception as e:
            logger.error(f"Error getting market summary: {e}", exc_info=True)
            return MarketSummary.empty()
