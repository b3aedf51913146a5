"""Tests for market summary aggregation."""

from decimal import Decimal

import pytest

from fakes import FlakyStore, make_instruments
from holomarket.market.models import Instrument
from holomarket.market.summary import MarketSummaryAggregator, summarize
from holomarket.store.memory import MemoryInstrumentStore


def corp(id_, symbol, change, volume=0, market_cap="0"):
    return Instrument(
        id=id_,
        symbol=symbol,
        name=symbol,
        price=Decimal("10"),
        change_24h=Decimal(str(change)),
        volume=volume,
        market_cap=Decimal(market_cap) if market_cap is not None else None,
    )


class TestSummarize:
    """Ranking and totals over a fixed snapshot."""

    def test_gainers_losers_and_total(self):
        snapshot = [
            corp(1, "A", 5, market_cap="100.50"),
            corp(2, "B", -3, market_cap="200.25"),
            corp(3, "C", 10, market_cap="300"),
        ]

        summary = summarize(snapshot)

        assert [e.symbol for e in summary.top_gainers] == ["C", "A", "B"]
        assert [e.symbol for e in summary.top_losers] == ["B", "A", "C"]
        assert summary.total_market_cap == Decimal("600.75")

    def test_top_three_only(self):
        snapshot = [corp(i, f"S{i}", change=i, volume=i * 10) for i in range(1, 7)]

        summary = summarize(snapshot)

        assert [e.symbol for e in summary.top_gainers] == ["S6", "S5", "S4"]
        assert [e.symbol for e in summary.top_losers] == ["S1", "S2", "S3"]
        assert [e.symbol for e in summary.highest_volume] == ["S6", "S5", "S4"]

    def test_ties_keep_store_order(self):
        snapshot = [
            corp(1, "A", 2, volume=50),
            corp(2, "B", 2, volume=50),
            corp(3, "C", 2, volume=50),
            corp(4, "D", 2, volume=50),
        ]

        summary = summarize(snapshot)

        assert [e.symbol for e in summary.top_gainers] == ["A", "B", "C"]
        assert [e.symbol for e in summary.top_losers] == ["A", "B", "C"]
        assert [e.symbol for e in summary.highest_volume] == ["A", "B", "C"]

    def test_missing_market_cap_counts_as_zero(self):
        snapshot = [corp(1, "A", 1, market_cap="50"), corp(2, "B", 1, market_cap=None)]

        assert summarize(snapshot).total_market_cap == Decimal("50")

    def test_empty_snapshot(self):
        summary = summarize([])
        assert summary.total_market_cap == 0
        assert summary.top_gainers == ()
        assert summary.highest_volume == ()

    def test_to_dict_is_json_friendly(self):
        summary = summarize([corp(1, "A", 1.25, volume=7, market_cap="10")])

        data = summary.to_dict()

        assert data["totalMarketCap"] == 10.0
        assert data["topGainers"] == [
            {"symbol": "A", "change": 1.25, "volume": 7, "marketCap": 10.0}
        ]


class TestAggregator:
    """Reads against a store."""

    @pytest.mark.asyncio
    async def test_reads_fresh_snapshot(self):
        store = MemoryInstrumentStore(make_instruments())
        aggregator = MarketSummaryAggregator(store)

        first = await aggregator.get_summary()
        await store.update_price(3, Decimal("0.03"), Decimal("50"), volume=9000)
        second = await aggregator.get_summary()

        assert first.total_market_cap == Decimal("1250000")
        assert second.top_gainers[0].symbol == "BMC"
        assert second.highest_volume[0].volume == 9000

    @pytest.mark.asyncio
    async def test_read_failure_returns_empty_summary(self):
        store = FlakyStore(make_instruments())
        store.fail_list = True

        summary = await MarketSummaryAggregator(store).get_summary()

        assert summary.total_market_cap == 0
        assert summary.top_gainers == ()
        assert summary.top_losers == ()
        assert summary.highest_volume == ()
