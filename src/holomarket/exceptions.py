"""Exception hierarchy for HoloMarket."""

from __future__ import annotations


class HoloMarketError(Exception):
    """Base class for all HoloMarket errors."""


class StoreError(HoloMarketError):
    """Instrument store read or write failed."""


class InstrumentNotFoundError(StoreError):
    """No instrument exists with the requested id."""

    def __init__(self, instrument_id: int):
        super().__init__(f"Instrument not found: {instrument_id}")
        self.instrument_id = instrument_id


class SubscriberSendError(HoloMarketError):
    """A message could not be delivered to a subscriber."""
