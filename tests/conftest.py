import sqlite3
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Set

import pytest

from otc_migrate.exceptions import TargetConnectionError
from otc_migrate.loaders.base import BaseLoader


class InMemoryLoader(BaseLoader):
    """Loader keeping rows per table, with per-transaction rollback."""

    def __init__(
        self,
        dry_run: bool = False,
        fail_batches: Optional[Dict[str, Set[int]]] = None,
        reachable: bool = True
    ):
        super().__init__(dry_run)
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.fail_batches = fail_batches or {}
        self.reachable = reachable
        self.events: List[str] = []
        self.connected = False
        self.closed = False
        self._write_counts: Dict[str, int] = {}

    async def connect(self) -> None:
        self.connected = True
        self.events.append("connect")

    async def close(self) -> None:
        self.closed = True

    async def ping(self) -> None:
        if not self.reachable:
            raise TargetConnectionError("connection refused")

    @asynccontextmanager
    async def transaction(self):
        pending: Dict[str, List[Dict[str, Any]]] = {}
        yield pending
        for table, rows in pending.items():
            existing = self.tables.setdefault(table, [])
            ids = {row["id"] for row in existing}
            existing.extend(row for row in rows if row["id"] not in ids)

    async def write_batch(self, table, records, tx) -> None:
        number = self._write_counts.get(table, 0) + 1
        self._write_counts[table] = number
        self.events.append(f"write:{table}:{number}")
        if number in self.fail_batches.get(table, set()):
            raise RuntimeError("duplicate key value violates unique constraint")
        tx.setdefault(table, []).extend(r.to_row() for r in records)

    def ids(self, table: str) -> List[Any]:
        return [row["id"] for row in self.tables.get(table, [])]


@pytest.fixture
def loader():
    return InMemoryLoader()


@pytest.fixture
def sqlite_db(tmp_path):
    """A small application database in Prisma's SQLite layout."""
    path = tmp_path / "dev.db"
    conn = sqlite3.connect(path)
    conn.executescript(
        """
        CREATE TABLE "User" (
            id TEXT PRIMARY KEY, email TEXT, phone TEXT, role TEXT,
            phone_verified BOOLEAN, "createdAt" DATETIME, "updatedAt" DATETIME
        );
        CREATE TABLE "Drug" (
            id TEXT PRIMARY KEY, generic_name TEXT, name_fa TEXT,
            adult_dose_mg REAL, "createdAt" DATETIME
        );
        """
    )
    conn.executemany(
        'INSERT INTO "User" (id, email, phone, role, phone_verified, "createdAt") VALUES (?, ?, ?, ?, ?, ?)',
        [
            ("u-2", "b@example.com", "09120000002", "USER", 1, 1735689600000),
            ("u-1", "a@example.com", "09120000001", "ADMIN", 0, "2025-01-01T00:00:00.000Z"),
        ],
    )
    conn.executemany(
        'INSERT INTO "Drug" (id, generic_name, name_fa, adult_dose_mg) VALUES (?, ?, ?, ?)',
        [
            ("d-1", "Acetaminophen", "استامینوفن", 500.0),
            ("d-2", "Ibuprofen", "ایبوپروفن", 400.0),
        ],
    )
    conn.commit()
    conn.close()
    return path
