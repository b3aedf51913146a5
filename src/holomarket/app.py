"""HoloMarket Main Application."""

from __future__ import annotations

import logging
from pathlib import Path

import uvicorn

from holomarket.config_loader import AppConfig, load_config_with_overrides
from holomarket.constants import LOG_FORMAT
from holomarket.server.app import create_app
from holomarket.service import MarketService
from holomarket.store.seed import load_seed_file, seed_store

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


class HoloMarketApp:
    """Main application orchestrator."""

    def __init__(
        self,
        config_path: str = "config/config.yaml",
        interval_seconds: float | None = None,
        store_backend: str | None = None,
        seed_path: str | None = None,
    ):
        self.config_path = Path(config_path)
        self._interval_override = interval_seconds
        self._store_override = store_backend
        self._seed_path = seed_path

        self.config: AppConfig | None = None
        self.service: MarketService | None = None

    async def initialize(self) -> MarketService:
        """Load config, build the service and prepare its store."""
        self.config = load_config_with_overrides(
            self.config_path.absolute(),
            interval_seconds=self._interval_override,
            store_backend=self._store_override,
        )
        setup_logging(self.config.environment.log_level.value)
        logger.info("Initializing HoloMarket...")

        self.service = MarketService(self.config)
        await self.service.initialize()

        if self._seed_path:
            await seed_store(self.service.store, load_seed_file(self._seed_path))

        instruments = await self.service.list_instruments()
        logger.info(f"Market has {len(instruments)} listed corporations")
        if self.service.news.generator.is_available:
            logger.info(f"News generator enabled: {self.config.openai.model}")
        return self.service

    async def run(self) -> None:
        """Serve HTTP/WebSocket clients until interrupted."""
        if self.service is None:
            await self.initialize()

        assert self.config is not None and self.service is not None
        await self.service.start()

        app = create_app(self.service, manage_lifecycle=False)
        server = uvicorn.Server(
            uvicorn.Config(
                app,
                host=self.config.server.host,
                port=self.config.server.port,
                log_level=self.config.environment.log_level.value.lower(),
            )
        )

        logger.info(f"Serving on http://{self.config.server.host}:{self.config.server.port}")
        try:
            await server.serve()
        finally:
            logger.info("Shutting down...")
            await self.service.close()
            logger.info("Shutdown complete.")
