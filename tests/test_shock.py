"""Tests for event-triggered market shocks."""

import json
import random
from decimal import Decimal

import pytest

from fakes import FakeSubscriber, FlakyStore, ScriptedRandom, make_instruments
from holomarket.config_loader import ShockConfig
from holomarket.constants import MarketImpact
from holomarket.market.engine import MarketSimulationEngine
from holomarket.market.hub import BroadcastHub
from holomarket.market.shock import MarketShock, draw_multiplier
from holomarket.store.memory import MemoryInstrumentStore


@pytest.fixture
def store():
    return MemoryInstrumentStore(make_instruments())


def make_shock(store, rng=None, hub=None):
    engine = MarketSimulationEngine(store, hub or BroadcastHub(), rng=rng or random.Random(5))
    return MarketShock(engine, ShockConfig())


class TestMultiplierBands:
    """Multiplier ranges per impact direction."""

    @pytest.mark.parametrize(
        "impact,low,high",
        [
            (MarketImpact.POSITIVE, 1.05, 1.15),
            (MarketImpact.NEGATIVE, 0.85, 0.95),
            (MarketImpact.MIXED, 0.925, 1.075),
        ],
    )
    def test_bounds(self, impact, low, high):
        rng = random.Random(11)
        config = ShockConfig()
        for _ in range(500):
            m = draw_multiplier(impact, rng, config)
            assert low - 1e-12 <= m <= high + 1e-12

    def test_band_edges(self):
        config = ShockConfig()
        rng = ScriptedRandom(uniforms=[0.05, 0.15, 0.05, 0.15])
        assert draw_multiplier(MarketImpact.POSITIVE, rng, config) == pytest.approx(1.05)
        assert draw_multiplier(MarketImpact.POSITIVE, rng, config) == pytest.approx(1.15)
        assert draw_multiplier(MarketImpact.NEGATIVE, rng, config) == pytest.approx(0.95)
        assert draw_multiplier(MarketImpact.NEGATIVE, rng, config) == pytest.approx(0.85)
        assert rng.uniform_calls == [(0.05, 0.15)] * 4


class TestTrigger:
    """Applying a shock through the store and hub."""

    @pytest.mark.asyncio
    async def test_positive_shock_exact(self, store):
        rng = ScriptedRandom(uniforms=[0.10], randoms=[0.5])
        shock = make_shock(store, rng=rng)

        batch = await shock.trigger(["KDY"], "positive", "Kuat wins fleet contract")

        assert len(batch) == 1
        update = batch.updates[0]
        assert update.symbol == "KDY"
        assert update.new_price == Decimal("110.00")
        assert float(update.change_24h) == pytest.approx(10.0)
        assert update.volume == 3500
        assert batch.label == "Kuat wins fleet contract"

        stored = await store.get(1)
        assert stored.price == Decimal("110.00")
        assert stored.volume == 3500

    @pytest.mark.asyncio
    async def test_untargeted_instruments_unchanged(self, store):
        before = {i.symbol: i for i in await store.list_all()}
        shock = make_shock(store)

        batch = await shock.trigger(["its"], MarketImpact.NEGATIVE, "Incom factory fire")

        assert [u.symbol for u in batch.updates] == ["ITS"]
        after = {i.symbol: i for i in await store.list_all()}
        assert after["KDY"] == before["KDY"]
        assert after["BMC"] == before["BMC"]
        assert after["ITS"].price < before["ITS"].price

    @pytest.mark.asyncio
    async def test_shock_volume_range(self, store):
        shock = make_shock(store, rng=random.Random(99))
        for _ in range(50):
            batch = await shock.trigger(["KDY", "ITS"], MarketImpact.MIXED, "Rumours")
            for update in batch.updates:
                assert 2000 <= update.volume < 5000
                assert update.new_price >= Decimal("0.01")

    @pytest.mark.asyncio
    async def test_shock_broadcasts_batch(self, store):
        hub = BroadcastHub()
        subscriber = FakeSubscriber()
        hub.register(subscriber)
        shock = make_shock(store, hub=hub)

        await shock.trigger(["KDY"], "mixed", "Senate hearing")
        await hub.join()

        message = json.loads(subscriber.messages[0])
        assert message["type"] == "marketUpdate"
        assert [d["symbol"] for d in message["data"]] == ["KDY"]
        await hub.close()

    @pytest.mark.asyncio
    async def test_unknown_symbols_give_empty_batch(self, store):
        shock = make_shock(store)
        batch = await shock.trigger(["XYZ"], "positive", "Nothing listed")
        assert len(batch) == 0

    @pytest.mark.asyncio
    async def test_invalid_impact(self, store):
        shock = make_shock(store)
        with pytest.raises(ValueError):
            await shock.trigger(["KDY"], "sideways", "Bad tag")

    @pytest.mark.asyncio
    async def test_failed_write_skipped(self):
        store = FlakyStore(make_instruments(), failing_ids={1})
        shock = make_shock(store)

        batch = await shock.trigger(["KDY", "ITS"], "positive", "Boom")

        assert [u.symbol for u in batch.updates] == ["ITS"]
        assert (await store.get(1)).price == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_list_failure_returns_none(self):
        store = FlakyStore(make_instruments())
        store.fail_list = True
        shock = make_shock(store)

        assert await shock.trigger(["KDY"], "positive", "Boom") is None
