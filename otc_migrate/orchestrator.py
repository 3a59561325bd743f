"""Migration orchestrator - drives the table-by-table batch migration."""

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .exceptions import TargetConnectionError
from .extractors.base import BaseExtractor
from .extractors.sqlite_extractor import SQLiteExtractor
from .loaders.base import BaseLoader
from .loaders.postgres_loader import PostgresLoader
from .models.migration import (
    DEFAULT_BATCH_SIZE,
    MigrationConfig,
    MigrationRun,
    MigrationStats,
    MigrationStatus,
    MigrationUnit,
)
from .models.record import partition
from .services.backup import BackupGuard, backup_timestamp
from .services.report import MigrationReport, ReportAggregator

logger = logging.getLogger(__name__)


def build_units(
    tables: Iterable[str],
    extractor: BaseExtractor,
    loader: BaseLoader
) -> List[MigrationUnit]:
    """Pair each table's read and write operations, keeping the given order."""
    return [
        MigrationUnit(
            table_name=table,
            fetch=extractor.fetcher(table),
            write=loader.writer(table),
        )
        for table in tables
    ]


class MigrationOrchestrator:
    """
    Orchestrates a migration run.

    Handles:
    - Backing up the source before anything is written
    - Migrating tables strictly in the order given
    - Splitting each table into ordered, transactional batches
    - Accounting every record as migrated or failed
    - Aggregating and saving the final report

    Tables and batches are processed one at a time. A failed fetch or a
    failed batch is recorded in that table's stats and the run moves on;
    only setup errors (backup, connection) abort the run.
    """

    def __init__(
        self,
        loader: BaseLoader,
        batch_size: int = DEFAULT_BATCH_SIZE,
        backup_guard: Optional[BackupGuard] = None,
        output_dir: Optional[Union[str, Path]] = None,
        aggregator: Optional[ReportAggregator] = None
    ):
        """
        Initialize the orchestrator.

        Args:
            loader: Target writer providing transactions
            batch_size: Maximum records per batch
            backup_guard: Backs up the source before migrating, if given
            output_dir: Directory for JSON run reports, if given
            aggregator: Report aggregator
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        self.loader = loader
        self.batch_size = batch_size
        self.backup_guard = backup_guard
        self.output_dir = Path(output_dir) if output_dir else None
        self.aggregator = aggregator or ReportAggregator()

    async def migrate_table(self, unit: MigrationUnit) -> MigrationStats:
        """
        Migrate one table's records from source to target.

        Args:
            unit: The table's fetch and write operations

        Returns:
            MigrationStats for the table; errors never escape this call
        """
        table = unit.table_name
        stats = MigrationStats(table_name=table)
        logger.info(f"Migrating {table}...")

        try:
            records = await unit.fetch()
        except Exception as e:
            stats.errors.append(f"Failed to fetch data: {e}")
            logger.error(f"Failed to migrate {table}: {e}")
            return stats

        stats.total_records = len(records)
        if not records:
            logger.info(f"No records found in {table}")
            return stats

        for batch in partition(table, records, self.batch_size):
            try:
                async with self.loader.transaction() as tx:
                    await unit.write(batch.records, tx)
            except Exception as e:
                stats.failed_records += len(batch)
                message = f"Batch {batch.index} failed: {e}"
                stats.errors.append(message)
                logger.error(f"  {table}: {message}")
            else:
                stats.migrated_records += len(batch)
                logger.info(f"  Migrated {table} batch {batch.index}: {len(batch)} records")

        logger.info(
            f"{table} migration completed: {stats.migrated_records}/{stats.total_records} records migrated"
        )
        return stats

    async def run(
        self,
        units: Sequence[MigrationUnit],
        source_path: Optional[Union[str, Path]] = None,
        name: str = "sqlite-to-postgres",
        migration_run: Optional[MigrationRun] = None
    ) -> MigrationRun:
        """
        Run a complete migration.

        Args:
            units: One unit per table, in dependency order
            source_path: Source database file to back up first
            name: Name recorded on the run
            migration_run: Existing run record to fill in (API-started runs)

        Returns:
            MigrationRun with per-table statistics

        Raises:
            MigrationError: on backup or connection failure, before any
                table is migrated
        """
        run = migration_run or MigrationRun(name=name)
        run.dry_run = self.loader.dry_run
        run.started_at = datetime.utcnow()

        try:
            if self.backup_guard is not None and source_path is not None:
                run.status = MigrationStatus.BACKING_UP
                loop = asyncio.get_running_loop()
                backup_path = await loop.run_in_executor(None, self.backup_guard.backup, source_path)
                run.backup_path = str(backup_path) if backup_path else None

            await self.loader.connect()
            if not await self.loader.check_connection():
                raise TargetConnectionError("Failed to connect to target database")

            run.status = MigrationStatus.MIGRATING
            for unit in units:
                stats = await self.migrate_table(unit)
                run.stats.append(stats)

            run.status = MigrationStatus.COMPLETED

        except Exception as e:
            logger.error(f"Migration failed: {e}")
            run.status = MigrationStatus.FAILED
            run.errors.append(str(e))
            raise

        finally:
            run.completed_at = datetime.utcnow()
            self._save_report(run)

        return run

    def report(self, run: MigrationRun) -> MigrationReport:
        """Aggregate a run's statistics."""
        return self.aggregator.aggregate(run.stats)

    def _save_report(self, run: MigrationRun) -> Optional[Path]:
        """Save the run and its report as JSON."""
        if self.output_dir is None:
            return None

        self.output_dir.mkdir(parents=True, exist_ok=True)
        filepath = self.output_dir / f"migration-report-{backup_timestamp()}.json"
        data = run.to_dict()
        data["report"] = self.report(run).to_dict()

        with open(filepath, 'w') as f:
            json.dump(data, f, indent=2, default=str)
        logger.info(f"Saved migration report to {filepath}")
        return filepath


async def run_from_config(
    config: MigrationConfig,
    migration_run: Optional[MigrationRun] = None,
    extractor: Optional[BaseExtractor] = None,
    loader: Optional[BaseLoader] = None
) -> Tuple[MigrationRun, MigrationReport]:
    """
    Back up the SQLite database and migrate it into PostgreSQL.

    Args:
        config: Migration configuration
        migration_run: Existing run record to fill in
        extractor: Source reader (defaults to the configured SQLite file)
        loader: Target writer (defaults to the configured PostgreSQL URL)

    Returns:
        The finished run and its aggregated report

    Raises:
        MigrationError: on configuration, backup or connection failure
    """
    config.validate()

    extractor = extractor or SQLiteExtractor(config.sqlite_path)
    loader = loader or PostgresLoader(config.database_url or "", dry_run=config.dry_run)
    orchestrator = MigrationOrchestrator(
        loader,
        batch_size=config.batch_size,
        backup_guard=BackupGuard(config.backup_dir),
        output_dir=config.output_dir,
    )

    logger.info(f"Starting SQLite to PostgreSQL migration of {len(config.tables)} tables")
    try:
        run = await orchestrator.run(
            build_units(config.tables, extractor, loader),
            source_path=config.sqlite_path,
            migration_run=migration_run,
        )
    finally:
        await extractor.close()
        await loader.close()

    return run, orchestrator.report(run)
