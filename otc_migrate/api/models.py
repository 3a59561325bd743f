"""Pydantic models for API requests and responses."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class MigrationStatusEnum(str, Enum):
    PENDING = "pending"
    BACKING_UP = "backing_up"
    MIGRATING = "migrating"
    COMPLETED = "completed"
    FAILED = "failed"


# Request Models
class MigrationStartRequest(BaseModel):
    dry_run: bool = False
    tables: Optional[List[str]] = None  # defaults to every table, in dependency order
    batch_size: Optional[int] = Field(default=None, gt=0)


# Response Models
class HealthResponse(BaseModel):
    ok: bool
    error: Optional[str] = None


class MigrationStatsResponse(BaseModel):
    table_name: str
    total_records: int
    migrated_records: int
    failed_records: int
    errors: List[str] = Field(default_factory=list)


class MigrationResponse(BaseModel):
    id: str
    name: str
    status: MigrationStatusEnum
    dry_run: bool = False
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    backup_path: Optional[str] = None
    stats: List[MigrationStatsResponse] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    report: Optional[Dict[str, Any]] = None


class MigrationListResponse(BaseModel):
    migrations: List[MigrationResponse]
    total: int


class MigrationStartResponse(BaseModel):
    status: str
    migration_id: str
