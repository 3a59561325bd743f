"""Migration execution models."""

import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from ..exceptions import ConfigError
from .record import TableRecord
from .schema import MIGRATION_ORDER

DEFAULT_BATCH_SIZE = 500
DEFAULT_SQLITE_PATH = "prisma/dev.db"
DEFAULT_BACKUP_DIR = "backups"

_TRUTHY = {"1", "true", "yes", "on"}


class MigrationStatus(str, Enum):
    """Status of a migration run."""
    PENDING = "pending"
    BACKING_UP = "backing_up"
    MIGRATING = "migrating"
    COMPLETED = "completed"
    FAILED = "failed"


FetchFn = Callable[[], Awaitable[List[TableRecord]]]
WriteFn = Callable[[List[TableRecord], Any], Awaitable[None]]


@dataclass(frozen=True)
class MigrationUnit:
    """The read and write operations for one table."""
    table_name: str
    fetch: FetchFn
    write: WriteFn


@dataclass
class MigrationStats:
    """Per-table accounting of a migration."""
    table_name: str
    total_records: int = 0
    migrated_records: int = 0
    failed_records: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def accounted_records(self) -> int:
        """Records that were either migrated or counted as failed."""
        return self.migrated_records + self.failed_records

    @property
    def succeeded(self) -> bool:
        """True when no record failed and no error was recorded."""
        return self.failed_records == 0 and not self.errors

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "table_name": self.table_name,
            "total_records": self.total_records,
            "migrated_records": self.migrated_records,
            "failed_records": self.failed_records,
            "errors": list(self.errors),
        }


@dataclass
class MigrationRun:
    """A complete migration run."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = "sqlite-to-postgres"
    status: MigrationStatus = MigrationStatus.PENDING
    dry_run: bool = False

    created_at: datetime = field(default_factory=datetime.utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    backup_path: Optional[str] = None
    stats: List[MigrationStats] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)  # fatal errors only

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @property
    def total_failed(self) -> int:
        return sum(s.failed_records for s in self.stats)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "dry_run": self.dry_run,
            "created_at": self.created_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "backup_path": self.backup_path,
            "stats": [s.to_dict() for s in self.stats],
            "errors": list(self.errors),
        }


@dataclass
class MigrationConfig:
    """Configuration for a migration."""
    sqlite_path: str = DEFAULT_SQLITE_PATH
    database_url: Optional[str] = None
    backup_dir: str = DEFAULT_BACKUP_DIR

    tables: List[str] = field(default_factory=lambda: list(MIGRATION_ORDER))
    batch_size: int = DEFAULT_BATCH_SIZE

    # Execution options
    dry_run: bool = False
    strict: bool = False  # non-zero exit code when any record failed

    # Output
    output_dir: Optional[str] = None  # JSON reports are written here when set
    log_level: str = "INFO"

    def validate(self) -> None:
        """Raise ConfigError if the configuration cannot be used."""
        if self.batch_size <= 0:
            raise ConfigError(f"Batch size must be positive, got {self.batch_size}")
        if not self.tables:
            raise ConfigError("No tables selected for migration")
        if not self.dry_run and not self.database_url:
            raise ConfigError("DATABASE_URL environment variable is not set")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (without credentials)."""
        return {
            "sqlite_path": self.sqlite_path,
            "database_configured": bool(self.database_url),
            "backup_dir": self.backup_dir,
            "tables": list(self.tables),
            "batch_size": self.batch_size,
            "dry_run": self.dry_run,
            "strict": self.strict,
            "output_dir": self.output_dir,
            "log_level": self.log_level,
        }

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "MigrationConfig":
        """
        Create from environment variables.

        Args:
            env: Mapping to read from (defaults to os.environ)
        """
        env = os.environ if env is None else env

        batch_size_raw = env.get("MIGRATION_BATCH_SIZE", str(DEFAULT_BATCH_SIZE))
        try:
            batch_size = int(batch_size_raw)
        except ValueError:
            raise ConfigError(f"MIGRATION_BATCH_SIZE must be an integer, got {batch_size_raw!r}")

        tables_raw = env.get("MIGRATION_TABLES", "")
        tables = [t.strip() for t in tables_raw.split(",") if t.strip()] or list(MIGRATION_ORDER)

        return cls(
            sqlite_path=env.get("SQLITE_PATH", DEFAULT_SQLITE_PATH),
            database_url=env.get("DATABASE_URL") or None,
            backup_dir=env.get("BACKUP_DIR", DEFAULT_BACKUP_DIR),
            tables=tables,
            batch_size=batch_size,
            dry_run=env.get("MIGRATION_DRY_RUN", "").lower() in _TRUTHY,
            strict=env.get("MIGRATION_STRICT", "").lower() in _TRUTHY,
            output_dir=env.get("MIGRATION_OUTPUT_DIR") or None,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )
