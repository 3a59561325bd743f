"""Base extractor interface."""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional
import logging

from ..models.record import TableRecord
from ..services.validator import RecordValidator

logger = logging.getLogger(__name__)


class BaseExtractor(ABC):
    """
    Base class for all source readers.

    Extractors read the complete, ordered contents of one table at a time
    and return them as validated TableRecord objects. The source is only
    ever read.
    """

    def __init__(self, validator: Optional[RecordValidator] = None):
        """
        Initialize the extractor.

        Args:
            validator: Validator used for source rows (defaults to the
                declared application schemas)
        """
        self.validator = validator or RecordValidator()

    @abstractmethod
    async def read_rows(self, table: str) -> List[Dict[str, Any]]:
        """
        Read every row of a table, in source order.

        Args:
            table: Table name

        Returns:
            List of column -> value mappings
        """
        pass

    async def fetch(self, table: str) -> List[TableRecord]:
        """
        Read and validate every row of a table.

        Raises:
            RecordValidationError: if a row does not match the table schema
        """
        rows = await self.read_rows(table)
        records = self.validator.validate_rows(table, rows)
        logger.debug(f"Fetched {len(records)} {table} records")
        return records

    def fetcher(self, table: str) -> Callable[[], Awaitable[List[TableRecord]]]:
        """Bind fetch() to a table, for use as a MigrationUnit fetch operation."""
        async def fetch_table() -> List[TableRecord]:
            return await self.fetch(table)
        return fetch_table

    async def close(self) -> None:
        """Release any resources held by the extractor."""
        pass

    async def __aenter__(self) -> "BaseExtractor":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class StaticExtractor(BaseExtractor):
    """Extractor over literal in-memory records (seed data, fixtures)."""

    def __init__(
        self,
        records_by_table: Dict[str, List[Dict[str, Any]]],
        validator: Optional[RecordValidator] = None
    ):
        super().__init__(validator)
        self.records_by_table = records_by_table

    async def read_rows(self, table: str) -> List[Dict[str, Any]]:
        return [dict(row) for row in self.records_by_table.get(table, [])]
