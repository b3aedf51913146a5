"""Sector volatility policy."""

from __future__ import annotations

from holomarket.config_loader import VolatilityConfig
from holomarket.constants import DEFAULT_VOLATILITY, SECTOR_VOLATILITY


def volatility_for_sector(
    sector: str | None,
    table: dict[str, float] | None = None,
    default: float = DEFAULT_VOLATILITY,
) -> float:
    """
    Max fractional price move per tick for a sector.

    Lookup is case-insensitive. Missing or unknown sectors get the default.
    """
    table = SECTOR_VOLATILITY if table is None else table
    if not sector:
        return default
    return table.get(sector.strip().lower(), default)


class VolatilityPolicy:
    """Callable policy bound to a configured sector table."""

    def __init__(self, config: VolatilityConfig | None = None):
        self.config = config or VolatilityConfig()

    def __call__(self, sector: str | None) -> float:
        return volatility_for_sector(sector, self.config.sectors, self.config.default)
