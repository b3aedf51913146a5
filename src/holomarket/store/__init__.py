"""Instrument store backends."""

from holomarket.store.base import InstrumentStore
from holomarket.store.memory import MemoryInstrumentStore
from holomarket.store.sqlite import SqliteInstrumentStore

__all__ = ["InstrumentStore", "MemoryInstrumentStore", "SqliteInstrumentStore"]
