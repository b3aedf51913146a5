"""AI-powered galactic news generator using OpenAI."""

from __future__ import annotations

import asyncio
import json
import logging
import random
import time

from openai import AsyncOpenAI

from holomarket.config_loader import OpenAIConfig
from holomarket.constants import MarketImpact, Urgency
from holomarket.market.models import Instrument
from holomarket.news.models import FALLBACK_NEWS, NewsEvent
from holomarket.news.prompts import NEWS_SYSTEM_PROMPT, build_news_prompt

logger = logging.getLogger(__name__)


class NewsEventGenerator:
    """
    Generates news events with OpenAI.

    Any failure (disabled, missing key, timeout, API error, unparseable
    reply) yields one of the canned fallback events instead.
    """

    def __init__(
        self,
        config: OpenAIConfig,
        client: AsyncOpenAI | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config
        self.rng = rng or random.Random()
        self._client = client

        if client is not None:
            return

        if not config.enabled:
            logger.info("News generator disabled in config, using fallback events")
            return

        if not config.api_key or config.api_key.startswith("${"):
            logger.warning("OpenAI API key not configured. Set OPENAI_API_KEY in .env")
            return

        self._client = AsyncOpenAI(api_key=config.api_key)
        logger.info(f"News generator initialized with model: {config.model}")

    @property
    def is_available(self) -> bool:
        """Check if the OpenAI client is configured."""
        return self._client is not None

    async def generate(self, instruments: list[Instrument]) -> NewsEvent:
        """Generate one news event touching some of the given instruments."""
        if not self.is_available:
            return self.fallback_event(instruments)

        start_time = time.time()
        listing = [f"{i.symbol}: {i.name}, {i.sector}" for i in instruments]

        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(  # type: ignore[union-attr]
                    model=self.config.model,
                    messages=[
                        {"role": "system", "content": NEWS_SYSTEM_PROMPT},
                        {"role": "user", "content": build_news_prompt(listing)},
                    ],
                    response_format={"type": "json_object"},
                    temperature=self.config.temperature,
                ),
                timeout=self.config.timeout_seconds,
            )
            raw_response = response.choices[0].message.content or ""
            latency_ms = int((time.time() - start_time) * 1000)
            event = self._parse_response(raw_response, instruments, latency_ms)
            logger.debug(f"News generated in {latency_ms}ms: {event.title}")
            return event

        except TimeoutError:
            logger.warning(f"AI news generation timed out after {self.config.timeout_seconds}s")
        except Exception as e:
            logger.error(f"AI news generation error: {e}")

        return self.fallback_event(instruments)

    def _parse_response(
        self, raw_response: str, instruments: list[Instrument], latency_ms: int
    ) -> NewsEvent:
        """Parse the JSON reply; fall back if it is unusable."""
        try:
            clean = raw_response.strip()
            if clean.startswith("```"):
                clean = clean.split("```")[1]
                if clean.startswith("json"):
                    clean = clean[4:]
            data = json.loads(clean.strip())

            known = {i.symbol.upper() for i in instruments}
            symbols = [
                str(s).upper() for s in data.get("affectedSymbols", []) if str(s).upper() in known
            ]

            return NewsEvent(
                title=str(data["title"]),
                description=str(data.get("description", "")),
                urgency=Urgency(str(data.get("urgency", "medium")).lower()),
                market_impact=MarketImpact(str(data.get("marketImpact", "mixed")).lower()),
                affected_symbols=symbols,
                raw_response=raw_response,
                latency_ms=latency_ms,
            )
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Failed to parse AI news response: {e}")
            event = self.fallback_event(instruments)
            event.raw_response = raw_response
            return event

    def fallback_event(self, instruments: list[Instrument]) -> NewsEvent:
        """Pick a canned event and resolve its sectors to listed symbols."""
        template = self.rng.choice(FALLBACK_NEWS)
        symbols = [
            i.symbol for i in instruments if (i.sector or "").strip().lower() in template.sectors
        ]
        return NewsEvent(
            title=template.title,
            description=template.description,
            urgency=template.urgency,
            market_impact=template.market_impact,
            affected_symbols=symbols,
            is_fallback=True,
        )
