"""SQLite instrument store."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, TypeVar

from holomarket.exceptions import InstrumentNotFoundError, StoreError
from holomarket.market.models import Instrument, parse_decimal
from holomarket.store.base import InstrumentStore
from holomarket.store.schema import SCHEMA_STATEMENTS

logger = logging.getLogger(__name__)

T = TypeVar("T")

_COLUMNS = "id, symbol, name, description, sector, price, change_24h, volume, market_cap, updated_at"


def _row_to_instrument(row: sqlite3.Row) -> Instrument:
    updated_at = None
    if row["updated_at"]:
        try:
            updated_at = datetime.fromisoformat(row["updated_at"])
        except ValueError:
            logger.debug(f"Ignoring malformed updated_at for {row['symbol']}: {row['updated_at']}")

    return Instrument(
        id=row["id"],
        symbol=row["symbol"],
        name=row["name"],
        description=row["description"] or "",
        sector=row["sector"] or "general",
        price=parse_decimal(row["price"]) or Decimal("0"),
        change_24h=parse_decimal(row["change_24h"]) or Decimal("0"),
        volume=row["volume"] or 0,
        market_cap=parse_decimal(row["market_cap"]),
        updated_at=updated_at,
    )


class SqliteInstrumentStore(InstrumentStore):
    """
    Persists instruments to SQLite.
    Offloads blocking I/O to a single-worker thread executor, so writes are
    applied one at a time in submission order.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="instrument-store")

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(self._executor, func, *args)
        except sqlite3.Error as e:
            raise StoreError(f"SQLite operation failed: {e}") from e

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    async def initialize(self) -> None:
        """Initialize database schema."""
        await self._run(self._init_db_sync)
        logger.info(f"Instrument store ready: {self.db_path}")

    def _init_db_sync(self) -> None:
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        with self._connect() as conn:
            for stmt in SCHEMA_STATEMENTS:
                conn.execute(stmt)
            conn.commit()

    async def close(self) -> None:
        """Shutdown the store executor."""
        self._executor.shutdown(wait=True)

    async def list_all(self) -> list[Instrument]:
        return await self._run(self._list_all_sync)

    def _list_all_sync(self) -> list[Instrument]:
        with self._connect() as conn:
            rows = conn.execute(f"SELECT {_COLUMNS} FROM corporations ORDER BY symbol").fetchall()
        return [_row_to_instrument(row) for row in rows]

    async def get(self, instrument_id: int) -> Instrument:
        instrument = await self._run(self._get_sync, instrument_id)
        if instrument is None:
            raise InstrumentNotFoundError(instrument_id)
        return instrument

    def _get_sync(self, instrument_id: int) -> Instrument | None:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM corporations WHERE id = ?", (instrument_id,)
            ).fetchone()
        return _row_to_instrument(row) if row else None

    async def update_price(
        self,
        instrument_id: int,
        new_price: Decimal,
        change_percent: Decimal,
        volume: int | None = None,
    ) -> None:
        updated = await self._run(
            self._update_price_sync, instrument_id, new_price, change_percent, volume
        )
        if not updated:
            raise InstrumentNotFoundError(instrument_id)

    def _update_price_sync(
        self,
        instrument_id: int,
        new_price: Decimal,
        change_percent: Decimal,
        volume: int | None,
    ) -> bool:
        # One statement: price, change and volume land together or not at all.
        with self._connect() as conn:
            cur = conn.execute(
                """
                UPDATE corporations
                SET price = ?, change_24h = ?, volume = COALESCE(?, volume), updated_at = ?
                WHERE id = ?
                """,
                (
                    str(new_price),
                    str(change_percent),
                    volume,
                    datetime.now().isoformat(),
                    instrument_id,
                ),
            )
            conn.commit()
            return cur.rowcount > 0

    async def upsert(self, instrument: Instrument) -> Instrument:
        return await self._run(self._upsert_sync, instrument)

    def _upsert_sync(self, instrument: Instrument) -> Instrument:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO corporations (
                    id, symbol, name, description, sector, price, change_24h, volume, market_cap, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(symbol) DO UPDATE SET
                    name = excluded.name,
                    description = excluded.description,
                    sector = excluded.sector,
                    price = excluded.price,
                    change_24h = excluded.change_24h,
                    volume = excluded.volume,
                    market_cap = excluded.market_cap,
                    updated_at = excluded.updated_at
                """,
                (
                    instrument.id if instrument.id > 0 else None,
                    instrument.symbol,
                    instrument.name,
                    instrument.description,
                    instrument.sector,
                    str(instrument.price),
                    str(instrument.change_24h),
                    instrument.volume,
                    str(instrument.market_cap) if instrument.market_cap is not None else None,
                    datetime.now().isoformat(),
                ),
            )
            conn.commit()
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM corporations WHERE symbol = ?", (instrument.symbol,)
            ).fetchone()
        return _row_to_instrument(row)
