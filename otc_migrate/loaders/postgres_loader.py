"""PostgreSQL loader."""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Tuple

import asyncpg

from .base import BaseLoader
from ..exceptions import TargetConnectionError
from ..models.record import TableRecord
from ..models.schema import quote_identifier

logger = logging.getLogger(__name__)


def build_insert_statement(table: str, columns: Sequence[str]) -> str:
    """Insert statement that skips rows whose key already exists."""
    column_list = ", ".join(quote_identifier(c) for c in columns)
    placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
    return (
        f"INSERT INTO {quote_identifier(table)} ({column_list}) "
        f"VALUES ({placeholders}) ON CONFLICT DO NOTHING"
    )


def group_rows_by_columns(
    rows: List[Dict[str, Any]]
) -> List[Tuple[Tuple[str, ...], List[Dict[str, Any]]]]:
    """
    Group rows sharing the same column set.

    Groups appear in order of first occurrence and keep row order.
    """
    groups: Dict[Tuple[str, ...], List[Dict[str, Any]]] = {}
    for row in rows:
        groups.setdefault(tuple(row.keys()), []).append(row)
    return list(groups.items())


def redact_dsn(dsn: str) -> str:
    """Hide credentials in a connection string for logging."""
    return dsn.split("@")[-1] if "@" in dsn else "***"


class PostgresLoader(BaseLoader):
    """
    Loader for a PostgreSQL target using an asyncpg connection pool.

    Each transaction holds one pooled connection for its duration.
    """

    def __init__(
        self,
        dsn: str,
        dry_run: bool = False,
        min_size: int = 1,
        max_size: int = 4,
        command_timeout: float = 60.0
    ):
        """
        Initialize the PostgreSQL loader.

        Args:
            dsn: PostgreSQL connection string (DATABASE_URL)
            dry_run: If True, log batches without writing them
            min_size: Minimum pool size
            max_size: Maximum pool size
            command_timeout: Per-statement timeout in seconds
        """
        super().__init__(dry_run)
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.command_timeout = command_timeout
        self._pool: Optional[asyncpg.Pool] = None

    async def connect(self) -> None:
        if self._pool is not None or self.dry_run:
            return

        logger.info(f"Connecting to PostgreSQL: {redact_dsn(self.dsn)}")
        try:
            self._pool = await asyncpg.create_pool(
                self.dsn,
                min_size=self.min_size,
                max_size=self.max_size,
                command_timeout=self.command_timeout,
            )
        except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as e:
            raise TargetConnectionError(f"Failed to connect to PostgreSQL: {e}") from e

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    def _require_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise TargetConnectionError("PostgreSQL loader is not connected")
        return self._pool

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Any]:
        if self.dry_run:
            yield None
            return

        async with self._require_pool().acquire() as conn:
            async with conn.transaction():
                yield conn

    async def write_batch(self, table: str, records: List[TableRecord], tx: Any) -> None:
        if self.dry_run:
            logger.info(f"[DRY RUN] Would insert {len(records)} {table} records")
            return

        for columns, rows in group_rows_by_columns([r.to_row() for r in records]):
            statement = build_insert_statement(table, columns)
            await tx.executemany(statement, [tuple(row[c] for c in columns) for row in rows])

    async def ping(self) -> None:
        if self.dry_run:
            return
        try:
            async with self._require_pool().acquire() as conn:
                await conn.fetchval("SELECT 1")
        except TargetConnectionError:
            raise
        except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as e:
            raise TargetConnectionError(str(e)) from e

