"""Service layer for the migration toolkit."""

from .backup import BackupGuard, PostgresDumper, parse_database_url
from .report import MigrationReport, ReportAggregator
from .validator import RecordValidator

__all__ = [
    "BackupGuard",
    "PostgresDumper",
    "parse_database_url",
    "MigrationReport",
    "ReportAggregator",
    "RecordValidator",
]
