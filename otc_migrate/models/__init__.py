"""Data models for the migration toolkit."""

from .record import (
    TableRecord,
    RecordBatch,
    PrismaDateTime,
    partition,
)
from .schema import (
    MIGRATION_ORDER,
    TABLE_SCHEMAS,
    get_record_model,
    order_tables,
    quote_identifier,
)
from .migration import (
    MigrationConfig,
    MigrationRun,
    MigrationStats,
    MigrationStatus,
    MigrationUnit,
)

__all__ = [
    "TableRecord",
    "RecordBatch",
    "PrismaDateTime",
    "partition",
    "MIGRATION_ORDER",
    "TABLE_SCHEMAS",
    "get_record_model",
    "order_tables",
    "quote_identifier",
    "MigrationConfig",
    "MigrationRun",
    "MigrationStats",
    "MigrationStatus",
    "MigrationUnit",
]
