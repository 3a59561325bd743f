import asyncio
import re
import sqlite3
from contextlib import asynccontextmanager
from datetime import datetime

import asyncpg
import pytest

from otc_migrate.exceptions import TargetConnectionError
from otc_migrate.extractors.sqlite_extractor import SQLiteExtractor
from otc_migrate.loaders.postgres_loader import (
    PostgresLoader,
    build_insert_statement,
    group_rows_by_columns,
    redact_dsn,
)
from otc_migrate.models.record import TableRecord
from otc_migrate.models.schema import FAQRecord


class FakeConnection:
    def __init__(self):
        self.executed = []
        self.transactions = 0

    async def executemany(self, statement, args):
        self.executed.append((statement, list(args)))

    async def fetchval(self, query):
        self.executed.append((query, []))
        return 1

    @asynccontextmanager
    async def transaction(self):
        self.transactions += 1
        yield


class FakePool:
    def __init__(self, conn):
        self.conn = conn
        self.closed = False

    @asynccontextmanager
    async def acquire(self):
        yield self.conn

    async def close(self):
        self.closed = True


def test_build_insert_statement():
    assert build_insert_statement("Drug", ["id", "generic_name", "createdAt"]) == (
        'INSERT INTO "Drug" ("id", "generic_name", "createdAt") '
        "VALUES ($1, $2, $3) ON CONFLICT DO NOTHING"
    )


def test_build_insert_statement_rejects_unsafe_names():
    with pytest.raises(ValueError):
        build_insert_statement("Drug", ["id", "name; DROP TABLE x"])


def test_group_rows_by_columns_keeps_order():
    rows = [
        {"id": 1, "a": 1},
        {"id": 2, "b": 2},
        {"id": 3, "a": 3},
    ]

    groups = group_rows_by_columns(rows)

    assert groups == [
        (("id", "a"), [{"id": 1, "a": 1}, {"id": 3, "a": 3}]),
        (("id", "b"), [{"id": 2, "b": 2}]),
    ]


def test_redact_dsn():
    assert redact_dsn("postgresql://otc:secret@db:5432/otc") == "db:5432/otc"
    assert "secret" not in redact_dsn("secret")


def test_write_batch_inside_transaction():
    conn = FakeConnection()
    loader = PostgresLoader("postgresql://otc:secret@db/otc")
    loader._pool = FakePool(conn)
    records = [
        FAQRecord.model_validate({"id": "f-1", "slug": "fever", "is_published": True}),
        FAQRecord.model_validate({"id": "f-2", "slug": "cough", "is_published": False}),
    ]

    async def write():
        async with loader.transaction() as tx:
            await loader.write_batch("FAQ", records, tx)

    asyncio.run(write())

    assert conn.transactions == 1
    statement, args = conn.executed[0]
    assert statement == (
        'INSERT INTO "FAQ" ("id", "slug", "is_published") '
        "VALUES ($1, $2, $3) ON CONFLICT DO NOTHING"
    )
    assert args == [("f-1", "fever", True), ("f-2", "cough", False)]


def test_dry_run_writes_nothing():
    loader = PostgresLoader("postgresql://otc:secret@db/otc", dry_run=True)
    records = [TableRecord.model_validate({"id": 1})]

    async def write():
        await loader.connect()
        assert await loader.check_connection()
        async with loader.transaction() as tx:
            assert tx is None
            await loader.write_batch("FAQ", records, tx)
        await loader.close()

    asyncio.run(write())

    assert loader._pool is None


def test_connect_failure_is_wrapped(monkeypatch):
    async def refuse(*args, **kwargs):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(asyncpg, "create_pool", refuse)
    loader = PostgresLoader("postgresql://otc:secret@db/otc")

    with pytest.raises(TargetConnectionError, match="connection refused"):
        asyncio.run(loader.connect())


def test_ping_and_close():
    conn = FakeConnection()
    pool = FakePool(conn)
    loader = PostgresLoader("postgresql://otc:secret@db/otc")
    loader._pool = pool

    async def check():
        ok = await loader.check_connection()
        await loader.close()
        return ok

    assert asyncio.run(check()) is True
    assert conn.executed == [("SELECT 1", [])]
    assert pool.closed


def test_check_connection_without_pool_is_false():
    loader = PostgresLoader("postgresql://otc:secret@db/otc")

    assert asyncio.run(loader.check_connection()) is False


def test_prisma_columns_reach_asyncpg_as_python_types(tmp_path):
    path = tmp_path / "dev.db"
    conn = sqlite3.connect(path)
    conn.executescript(
        """
        CREATE TABLE "MedicalHistory" (
            id TEXT PRIMARY KEY, patient_profile_id TEXT, condition_name TEXT,
            condition_type TEXT, diagnosed_date DATETIME, is_chronic BOOLEAN,
            is_active BOOLEAN, notes TEXT, "createdAt" DATETIME, "updatedAt" DATETIME
        );
        CREATE TABLE "PatientProfile" (
            id TEXT PRIMARY KEY, user_id TEXT, first_name TEXT, date_of_birth DATETIME,
            weight_kg REAL, "createdAt" DATETIME
        );
        """
    )
    conn.execute(
        'INSERT INTO "MedicalHistory" VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)',
        ("mh-1", "pp-1", "Asthma", "RESPIRATORY", 1735689600000, 1, 0, None,
         1735689600000, 1735689600000),
    )
    conn.execute(
        'INSERT INTO "PatientProfile" VALUES (?, ?, ?, ?, ?, ?)',
        ("pp-1", "u-1", "Sara", 946684800000, 21.5, 1735689600000),
    )
    conn.commit()
    conn.close()

    target = FakeConnection()
    loader = PostgresLoader("postgresql://otc:secret@db/otc")
    extractor = SQLiteExtractor(path)

    async def migrate():
        try:
            for table in ("PatientProfile", "MedicalHistory"):
                await loader.write_batch(table, await extractor.fetch(table), target)
        finally:
            await extractor.close()

    asyncio.run(migrate())

    (profile_sql, profile_args), (history_sql, history_args) = target.executed
    profile = dict(zip(re.findall(r'"(\w+)"', profile_sql)[1:], profile_args[0]))
    history = dict(zip(re.findall(r'"(\w+)"', history_sql)[1:], history_args[0]))

    assert profile["date_of_birth"] == datetime(2000, 1, 1)
    assert isinstance(profile["createdAt"], datetime)
    assert history["is_chronic"] is True
    assert history["is_active"] is False
    assert history["diagnosed_date"] == datetime(2025, 1, 1)
    assert isinstance(history["updatedAt"], datetime)
    assert history["notes"] is None
