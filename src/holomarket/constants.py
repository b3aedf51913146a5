"""Core constants for HoloMarket."""

from decimal import Decimal
from enum import Enum


class MarketImpact(str, Enum):
    """Direction of a news-driven market shock."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    MIXED = "mixed"


class Urgency(str, Enum):
    """Urgency of a generated news event."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class StoreBackend(str, Enum):
    """Instrument store backend selection."""

    SQLITE = "sqlite"
    MEMORY = "memory"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


# ============================================
# Sector Volatility (max fractional move per tick)
# ============================================

DEFAULT_VOLATILITY = 0.03

SECTOR_VOLATILITY = {
    "military": 0.03,
    "shipping": 0.04,
    "mining": 0.05,
    "manufacturing": 0.025,
    "financial": 0.02,
    "technology": 0.06,
    "energy": 0.04,
    "general": 0.03,
}

# ============================================
# Default Values
# ============================================

DEFAULT_TICK_INTERVAL_SECONDS = 30.0
DEFAULT_FLOOR_PRICE = Decimal("0.01")
DEFAULT_PRICE_QUANTUM = Decimal("0.01")
DEFAULT_BASE_VOLUME = 1000
DEFAULT_VOLUME_SENSITIVITY = 0.1

DEFAULT_SHOCK_MIN_MOVE = 0.05
DEFAULT_SHOCK_MAX_MOVE = 0.15
DEFAULT_SHOCK_MIXED_BAND = 0.075
DEFAULT_SHOCK_BASE_VOLUME = 2000
DEFAULT_SHOCK_VOLUME_SPREAD = 3000

DEFAULT_NEWS_INTERVAL_SECONDS = 600.0

SUMMARY_TOP_N = 3

# ============================================
# Application Constants
# ============================================

APP_NAME = "holomarket"
MARKET_UPDATE_MESSAGE_TYPE = "marketUpdate"
STORE_DB_NAME = "market.db"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
