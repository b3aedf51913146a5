"""Instrument store database schema."""

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS corporations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        symbol TEXT NOT NULL UNIQUE,
        name TEXT NOT NULL,
        description TEXT,
        sector TEXT,
        price TEXT NOT NULL,
        change_24h TEXT DEFAULT '0',
        volume INTEGER DEFAULT 0,
        market_cap TEXT,
        updated_at TEXT
    );
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_corporations_symbol ON corporations(symbol);
    """,
]
