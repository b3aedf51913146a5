"""HoloMarket: galactic stock market simulation."""

__version__ = "0.1.0"
