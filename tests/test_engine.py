"""Tests for MarketSimulationEngine."""

import asyncio
import json
import random
from decimal import Decimal

import pytest

from fakes import FakeSubscriber, FlakyStore, ScriptedRandom, make_instruments
from holomarket.config_loader import SimulationConfig
from holomarket.market.engine import MarketSimulationEngine, tick_volume
from holomarket.market.hub import BroadcastHub
from holomarket.store.memory import MemoryInstrumentStore


@pytest.fixture
def store():
    return MemoryInstrumentStore(make_instruments())


@pytest.fixture
def hub():
    return BroadcastHub()


class SlowStore(MemoryInstrumentStore):
    """Store whose listing takes a while, to catch a tick mid-flight."""

    def __init__(self, instruments, delay: float):
        super().__init__(instruments)
        self.delay = delay

    async def list_all(self):
        await asyncio.sleep(self.delay)
        return await super().list_all()


class TestTickAlgorithm:
    """Exact outputs with a scripted random source."""

    @pytest.mark.asyncio
    async def test_scripted_tick(self, store, hub):
        # Store order is by symbol: BMC, ITS, KDY
        rng = ScriptedRandom(uniforms=[0.5, -1.0, 1.0], randoms=[0.5, 0.0, 0.99])
        engine = MarketSimulationEngine(store, hub, rng=rng)

        batch = await engine.tick()

        assert [u.symbol for u in batch.updates] == ["BMC", "ITS", "KDY"]
        bmc, its, kdy = batch.updates

        # Unknown sector falls back to 3%; 0.02 * 1.015 rounds back to 0.02
        assert bmc.new_price == Decimal("0.02")
        assert bmc.change_24h == 0
        assert bmc.volume == 1000

        # Technology moves up to 6%, sector lookup is case-insensitive
        assert its.new_price == Decimal("47.00")
        assert float(its.change_24h) == pytest.approx(-6.0)
        assert its.volume == 800

        assert kdy.new_price == Decimal("103.00")
        assert float(kdy.change_24h) == pytest.approx(3.0)
        assert kdy.volume == 1937

        assert rng.uniform_calls == [(-1.0, 1.0)] * 3

    @pytest.mark.asyncio
    async def test_tick_persists_price_change_and_volume(self, store, hub):
        rng = ScriptedRandom(uniforms=[0.0, 0.0, 1.0], randoms=[0.5, 0.5, 0.5])
        engine = MarketSimulationEngine(store, hub, rng=rng)

        await engine.tick()

        kdy = await store.get(1)
        assert kdy.price == Decimal("103.00")
        assert float(kdy.change_24h) == pytest.approx(3.0)
        assert kdy.volume == round(1000 * (1 + 3.0 * 0.1))
        assert kdy.market_cap == Decimal("1000000")

    @pytest.mark.asyncio
    async def test_price_floored(self, hub):
        store = MemoryInstrumentStore(make_instruments()[2:])
        rng = ScriptedRandom(uniforms=[-1.0], randoms=[0.5])
        engine = MarketSimulationEngine(store, hub, volatility=lambda sector: 0.999, rng=rng)

        batch = await engine.tick()

        update = batch.updates[0]
        assert update.new_price == Decimal("0.01")
        assert float(update.change_24h) == pytest.approx(-50.0)

    def test_clamp_price(self, store, hub):
        engine = MarketSimulationEngine(store, hub)
        assert engine.clamp_price(Decimal("-5")) == Decimal("0.01")
        assert engine.clamp_price(Decimal("0.004")) == Decimal("0.01")
        assert engine.clamp_price(Decimal("12.345")) == Decimal("12.35")

    @pytest.mark.asyncio
    async def test_random_ticks_hold_invariants(self, hub):
        store = MemoryInstrumentStore(make_instruments())
        engine = MarketSimulationEngine(store, hub, rng=random.Random(42))

        for _ in range(200):
            before = {i.id: i.price for i in await store.list_all()}
            batch = await engine.tick()
            for update in batch.updates:
                old = before[update.instrument_id]
                assert update.new_price >= Decimal("0.01")
                expected = float((update.new_price - old) / old * 100)
                assert float(update.change_24h) == pytest.approx(expected)
                assert update.volume > 0


class TestTickVolume:
    """Volume sensitivity to the size of the move."""

    def test_monotonic_in_change(self):
        for draw in (0.0, 0.3, 0.999):
            volumes = [tick_volume(c, draw, 1000, 0.1) for c in (0, 0.5, 1, 2.5, 5, -5, 10)]
            # -5 has the same magnitude as 5
            assert volumes[:5] == sorted(volumes[:5])
            assert volumes[4] == volumes[5]
            assert volumes[6] >= volumes[5]

    def test_never_zero(self):
        assert tick_volume(0.0, 0.0, 1000, 0.1) == 500


class TestFailureIsolation:
    """Per-instrument and store-level failures."""

    @pytest.mark.asyncio
    async def test_failed_write_skips_instrument(self, hub):
        store = FlakyStore(make_instruments(), failing_ids={2})
        engine = MarketSimulationEngine(store, hub, rng=random.Random(1))

        batch = await engine.tick()

        assert [u.symbol for u in batch.updates] == ["BMC", "KDY"]
        its = await store.get(2)
        assert its.price == Decimal("50.00")

    @pytest.mark.asyncio
    async def test_list_failure_skips_broadcast(self, hub):
        store = FlakyStore(make_instruments())
        store.fail_list = True
        subscriber = FakeSubscriber()
        hub.register(subscriber)
        engine = MarketSimulationEngine(store, hub)

        assert await engine.tick() is None

        await hub.join()
        assert subscriber.messages == []
        await hub.close()

    @pytest.mark.asyncio
    async def test_empty_store_broadcasts_empty_batch(self, hub):
        subscriber = FakeSubscriber()
        hub.register(subscriber)
        engine = MarketSimulationEngine(MemoryInstrumentStore(), hub)

        batch = await engine.tick()
        await hub.join()

        assert len(batch) == 0
        assert len(subscriber.messages) == 1
        message = json.loads(subscriber.messages[0])
        assert message["type"] == "marketUpdate"
        assert message["data"] == []
        await hub.close()


class TestBroadcastMessage:
    """Wire format handed to subscribers."""

    @pytest.mark.asyncio
    async def test_message_shape(self, store, hub):
        subscriber = FakeSubscriber()
        hub.register(subscriber)
        engine = MarketSimulationEngine(store, hub, rng=random.Random(3))

        await engine.tick()
        await hub.join()

        message = json.loads(subscriber.messages[0])
        assert message["type"] == "marketUpdate"
        assert "timestamp" in message
        assert [d["symbol"] for d in message["data"]] == ["BMC", "ITS", "KDY"]
        entry = message["data"][2]
        assert set(entry) == {"corporationId", "symbol", "newPrice", "change24h", "volume"}
        assert entry["corporationId"] == 1
        assert isinstance(entry["newPrice"], float)
        assert isinstance(entry["volume"], int)
        await hub.close()


class TestLifecycle:
    """Recurring trigger start/stop."""

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, store, hub):
        engine = MarketSimulationEngine(
            store, hub, config=SimulationConfig(interval_seconds=0.05), rng=random.Random(0)
        )

        engine.start()
        first_task = engine._task
        engine.start()
        assert engine._task is first_task

        await asyncio.sleep(0.28)
        await engine.stop()

        # One trigger at 50ms gives about 5 ticks; two would give about 10
        assert 1 <= engine.tick_count <= 6
        assert engine.is_running is False

    @pytest.mark.asyncio
    async def test_stop_lets_running_tick_finish(self, hub):
        store = SlowStore(make_instruments(), delay=0.1)
        engine = MarketSimulationEngine(
            store, hub, config=SimulationConfig(interval_seconds=0.01), rng=random.Random(0)
        )

        engine.start()
        await asyncio.sleep(0.05)  # first tick is waiting on the store
        await engine.stop()

        assert engine.tick_count == 1
        kdy = await store.get(1)
        assert kdy.updated_at is not None

    @pytest.mark.asyncio
    async def test_stop_without_start(self, store, hub):
        engine = MarketSimulationEngine(store, hub)
        await engine.stop()
        assert engine.is_running is False

    @pytest.mark.asyncio
    async def test_restart_after_stop(self, store, hub):
        engine = MarketSimulationEngine(
            store, hub, config=SimulationConfig(interval_seconds=0.02), rng=random.Random(0)
        )
        engine.start()
        await engine.stop()
        engine.start()
        assert engine.is_running is True
        await engine.stop()
