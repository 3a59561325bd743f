"""Migration report aggregation."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from ..models.migration import MigrationStats

RULE = "=" * 60


@dataclass
class TableLine:
    """One table's row in the report."""
    table_name: str
    total_records: int
    migrated_records: int
    failed_records: int
    errors: List[str] = field(default_factory=list)

    @property
    def status(self) -> str:
        return "OK" if self.failed_records == 0 and not self.errors else "PARTIAL"

    def render(self) -> List[str]:
        lines = [
            f"{'[' + self.status + ']':<9} {self.table_name:<20} | "
            f"Total: {self.total_records:>5} | "
            f"Migrated: {self.migrated_records:>5} | "
            f"Failed: {self.failed_records:>5}"
        ]
        lines.extend(f"    - {error}" for error in self.errors)
        return lines


@dataclass
class MigrationReport:
    """Summary of a migration across all tables, in migration order."""
    tables: List[TableLine] = field(default_factory=list)
    total_records: int = 0
    migrated_records: int = 0
    failed_records: int = 0

    @property
    def success(self) -> bool:
        """Full success only when no record failed."""
        return self.failed_records == 0

    @property
    def has_errors(self) -> bool:
        """True when any table recorded an error, including fetch failures."""
        return any(t.errors for t in self.tables)

    def render(self) -> str:
        """Human-readable summary for the console."""
        lines = ["Migration Summary:", RULE]
        for table in self.tables:
            lines.extend(table.render())
        lines.append(RULE)
        lines.append(f"Overall: {self.migrated_records}/{self.total_records} records migrated successfully")

        if self.success:
            lines.append("Migration completed successfully with no errors!")
        else:
            lines.append(
                f"Migration completed with {self.failed_records} failed records. "
                "Please review the errors above."
            )
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "success": self.success,
            "total_records": self.total_records,
            "migrated_records": self.migrated_records,
            "failed_records": self.failed_records,
            "tables": [
                {
                    "table_name": t.table_name,
                    "status": t.status,
                    "total_records": t.total_records,
                    "migrated_records": t.migrated_records,
                    "failed_records": t.failed_records,
                    "errors": list(t.errors),
                }
                for t in self.tables
            ],
        }


class ReportAggregator:
    """Folds per-table statistics into a MigrationReport."""

    def aggregate(self, stats: Sequence[MigrationStats]) -> MigrationReport:
        report = MigrationReport()

        for stat in stats:
            report.tables.append(TableLine(
                table_name=stat.table_name,
                total_records=stat.total_records,
                migrated_records=stat.migrated_records,
                failed_records=stat.failed_records,
                errors=list(stat.errors),
            ))
            report.total_records += stat.total_records
            report.migrated_records += stat.migrated_records
            report.failed_records += stat.failed_records

        return report
