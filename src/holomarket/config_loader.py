"""Market configuration: YAML file, ${VAR} placeholders, pydantic models."""

from __future__ import annotations

import os
import re
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

# .env is read once, before any placeholder is resolved
load_dotenv(find_dotenv(usecwd=True))

from holomarket.constants import (
    DEFAULT_BASE_VOLUME,
    DEFAULT_FLOOR_PRICE,
    DEFAULT_NEWS_INTERVAL_SECONDS,
    DEFAULT_PRICE_QUANTUM,
    DEFAULT_SHOCK_BASE_VOLUME,
    DEFAULT_SHOCK_MAX_MOVE,
    DEFAULT_SHOCK_MIN_MOVE,
    DEFAULT_SHOCK_MIXED_BAND,
    DEFAULT_SHOCK_VOLUME_SPREAD,
    DEFAULT_TICK_INTERVAL_SECONDS,
    DEFAULT_VOLATILITY,
    DEFAULT_VOLUME_SENSITIVITY,
    SECTOR_VOLATILITY,
    LogLevel,
    StoreBackend,
)

_PLACEHOLDER = re.compile(r"\$\{(?P<name>[^}:]+)(?::(?P<default>[^}]*))?\}")


def interpolate_env_vars(value: Any) -> Any:
    """
    Resolve ``${NAME}`` and ``${NAME:default}`` placeholders in a string.

    An unset variable without a default resolves to an empty string.
    Non-string values pass through untouched.
    """
    if not isinstance(value, str):
        return value

    def resolve(match: re.Match[str]) -> str:
        found = os.environ.get(match.group("name"))
        if found is not None:
            return found
        return match.group("default") or ""

    return _PLACEHOLDER.sub(resolve, value)


def _resolve_node(node: Any) -> Any:
    if isinstance(node, dict):
        return process_config_dict(node)
    if isinstance(node, list):
        return [_resolve_node(item) for item in node]
    return interpolate_env_vars(node)


def process_config_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Apply placeholder resolution to every value in a nested mapping."""
    return {key: _resolve_node(value) for key, value in data.items()}


def _to_decimal(v: Any) -> Decimal:
    if isinstance(v, Decimal):
        return v
    return Decimal(str(v))


# --- Section models ---


class EnvironmentConfig(BaseModel):
    """Environment and runtime settings."""

    log_level: LogLevel = LogLevel.INFO
    data_dir: str = "./data"


class SimulationConfig(BaseModel):
    """Periodic market simulation settings."""

    interval_seconds: float = DEFAULT_TICK_INTERVAL_SECONDS
    floor_price: Decimal = DEFAULT_FLOOR_PRICE
    price_quantum: Decimal = DEFAULT_PRICE_QUANTUM
    base_volume: int = DEFAULT_BASE_VOLUME
    volume_sensitivity: float = DEFAULT_VOLUME_SENSITIVITY
    autostart: bool = True

    @field_validator("floor_price", "price_quantum", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Decimal:
        """Convert numeric values to Decimal."""
        return _to_decimal(v)

    @field_validator("floor_price", "price_quantum")
    @classmethod
    def validate_positive_decimal(cls, v: Decimal) -> Decimal:
        """Prices must stay strictly positive."""
        if v <= 0:
            raise ValueError(f"Value must be positive, got: {v}")
        return v

    @field_validator("interval_seconds")
    @classmethod
    def validate_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Tick interval must be positive, got: {v}")
        return v

    @field_validator("base_volume")
    @classmethod
    def validate_base_volume(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Base volume must be positive, got: {v}")
        return v

    @field_validator("volume_sensitivity")
    @classmethod
    def validate_sensitivity(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"Volume sensitivity must be non-negative, got: {v}")
        return v


class ShockConfig(BaseModel):
    """News-driven market shock settings."""

    min_move: float = DEFAULT_SHOCK_MIN_MOVE
    max_move: float = DEFAULT_SHOCK_MAX_MOVE
    mixed_band: float = DEFAULT_SHOCK_MIXED_BAND
    base_volume: int = DEFAULT_SHOCK_BASE_VOLUME
    volume_spread: int = DEFAULT_SHOCK_VOLUME_SPREAD

    @field_validator("min_move", "max_move", "mixed_band")
    @classmethod
    def validate_fraction(cls, v: float) -> float:
        """Moves are fractions of price in [0, 1)."""
        if not 0 <= v < 1:
            raise ValueError(f"Move must be within [0, 1), got: {v}")
        return v

    @field_validator("base_volume", "volume_spread")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"Value must be non-negative, got: {v}")
        return v

    @model_validator(mode="after")
    def validate_move_range(self) -> ShockConfig:
        """Validate the directional move band is well-formed."""
        if self.min_move >= self.max_move:
            raise ValueError(
                f"min_move ({self.min_move}) must be less than max_move ({self.max_move})"
            )
        return self


class VolatilityConfig(BaseModel):
    """Sector to max per-tick fractional move mapping."""

    default: float = DEFAULT_VOLATILITY
    sectors: dict[str, float] = Field(default_factory=lambda: dict(SECTOR_VOLATILITY))

    @field_validator("sectors")
    @classmethod
    def normalize_sectors(cls, v: dict[str, float]) -> dict[str, float]:
        """Lower-case sector keys and reject out-of-range values."""
        normalized = {}
        for sector, volatility in v.items():
            if not 0 <= volatility < 1:
                raise ValueError(f"Volatility for {sector} must be within [0, 1), got: {volatility}")
            normalized[sector.strip().lower()] = volatility
        return normalized

    @field_validator("default")
    @classmethod
    def validate_default(cls, v: float) -> float:
        if not 0 <= v < 1:
            raise ValueError(f"Default volatility must be within [0, 1), got: {v}")
        return v


class StoreConfig(BaseModel):
    """Instrument store configuration."""

    backend: StoreBackend = StoreBackend.SQLITE
    database_path: str = "./data/market.db"


class ServerConfig(BaseModel):
    """HTTP/WebSocket server configuration."""

    host: str = "127.0.0.1"
    port: int = 5000
    websocket_path: str = "/ws"

    @field_validator("websocket_path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError(f"WebSocket path must start with '/', got: {v}")
        return v


class OpenAIConfig(BaseModel):
    """OpenAI news generator configuration."""

    enabled: bool = False
    api_key: str = ""
    model: str = "gpt-4o"
    timeout_seconds: float = 20.0
    temperature: float = 0.7
    news_interval_seconds: float = DEFAULT_NEWS_INTERVAL_SECONDS


class AppConfig(BaseModel):
    """Root application configuration."""

    environment: EnvironmentConfig = Field(default_factory=EnvironmentConfig)
    simulation: SimulationConfig = Field(default_factory=SimulationConfig)
    shock: ShockConfig = Field(default_factory=ShockConfig)
    volatility: VolatilityConfig = Field(default_factory=VolatilityConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)

    @property
    def is_memory_store(self) -> bool:
        """Check if instruments are kept in memory only."""
        return self.store.backend == StoreBackend.MEMORY


# --- Loading ---


class ConfigLoader:
    """Reads one YAML config file and caches the validated result."""

    def __init__(self, config_path: str | Path) -> None:
        self.config_path = Path(config_path)
        self._config: AppConfig | None = None

    def load(self) -> AppConfig:
        """
        Parse, resolve placeholders and validate.

        Raises:
            FileNotFoundError: The file is missing.
            yaml.YAMLError: The file is not valid YAML.
            pydantic.ValidationError: A section failed validation.
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        raw = yaml.safe_load(self.config_path.read_text(encoding="utf-8")) or {}
        self._config = AppConfig.model_validate(process_config_dict(raw))
        return self._config

    @property
    def config(self) -> AppConfig:
        return self._config if self._config is not None else self.load()

    def reload(self) -> AppConfig:
        """Discard the cached config and read the file again."""
        self._config = None
        return self.load()


def load_config(config_path: str | Path) -> AppConfig:
    return ConfigLoader(config_path).load()


def load_config_with_overrides(
    config_path: str | Path,
    *,
    interval_seconds: float | None = None,
    store_backend: str | None = None,
) -> AppConfig:
    """
    Load a config file, then apply command-line overrides.

    Overridden sections are re-validated, so a bad override fails the same
    way a bad file value would.
    """
    config = load_config(config_path)
    overrides: dict[str, Any] = {}

    if interval_seconds is not None:
        overrides["simulation"] = SimulationConfig.model_validate(
            {**config.simulation.model_dump(), "interval_seconds": interval_seconds}
        )

    if store_backend is not None:
        overrides["store"] = StoreConfig.model_validate(
            {**config.store.model_dump(), "backend": store_backend.lower()}
        )

    return config.model_copy(update=overrides) if overrides else config
