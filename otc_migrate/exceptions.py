"""Exceptions raised by the migration toolkit."""

from typing import Any, List, Optional


class MigrationError(Exception):
    """Base class for migration toolkit errors."""


class ConfigError(MigrationError):
    """Raised when configuration is missing or malformed."""


class BackupError(MigrationError):
    """Raised when a backup cannot be created."""


class TargetConnectionError(MigrationError):
    """Raised when the target database cannot be reached."""


class RecordValidationError(MigrationError):
    """Raised when source rows do not match their declared table schema."""

    def __init__(self, table: str, errors: List[str], row_index: Optional[int] = None):
        self.table = table
        self.errors = errors
        self.row_index = row_index
        location = f" (row {row_index})" if row_index is not None else ""
        super().__init__(f"Invalid {table} record{location}: {'; '.join(errors)}")

    @classmethod
    def from_pydantic(cls, table: str, row_index: int, exc: Any) -> "RecordValidationError":
        """Build from a pydantic ValidationError."""
        messages = []
        for error in exc.errors():
            field = ".".join(str(part) for part in error.get("loc", ())) or "<record>"
            messages.append(f"{field}: {error.get('msg', 'invalid value')}")
        return cls(table, messages, row_index=row_index)
