"""Galactic news generation feeding the market shock path."""

from holomarket.news.generator import NewsEventGenerator
from holomarket.news.models import NewsEvent
from holomarket.news.scheduler import NewsScheduler

__all__ = ["NewsEvent", "NewsEventGenerator", "NewsScheduler"]
