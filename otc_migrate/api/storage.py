"""In-memory store of migration runs started through the API."""

from typing import Any, Dict, List, Optional

from ..models.migration import MigrationRun, MigrationStatus
from .models import MigrationResponse

ACTIVE_STATUSES = (
    MigrationStatus.PENDING,
    MigrationStatus.BACKING_UP,
    MigrationStatus.MIGRATING,
)


class MigrationStorage:
    """Keeps runs and their reports for the lifetime of the process."""

    def __init__(self):
        self._runs: Dict[str, MigrationRun] = {}
        self._reports: Dict[str, Dict[str, Any]] = {}

    def add(self, run: MigrationRun) -> MigrationRun:
        self._runs[run.id] = run
        return run

    def get_run(self, migration_id: str) -> Optional[MigrationRun]:
        return self._runs.get(migration_id)

    def set_report(self, migration_id: str, report: Dict[str, Any]) -> None:
        self._reports[migration_id] = report

    def active_run(self) -> Optional[MigrationRun]:
        """The run still in progress, if any."""
        for run in self._runs.values():
            if run.status in ACTIVE_STATUSES:
                return run
        return None

    def get(self, migration_id: str) -> Optional[MigrationResponse]:
        run = self._runs.get(migration_id)
        if run is None:
            return None
        return self._to_response(run)

    def list_all(self) -> List[MigrationResponse]:
        runs = sorted(self._runs.values(), key=lambda r: r.created_at, reverse=True)
        return [self._to_response(r) for r in runs]

    def clear(self) -> None:
        self._runs.clear()
        self._reports.clear()

    def _to_response(self, run: MigrationRun) -> MigrationResponse:
        data = run.to_dict()
        data["report"] = self._reports.get(run.id)
        return MigrationResponse(**data)


migration_storage = MigrationStorage()
