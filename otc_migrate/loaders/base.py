"""Base loader interface for target databases."""

from abc import ABC, abstractmethod
from typing import Any, AsyncContextManager, Awaitable, Callable, List
import logging

from ..exceptions import TargetConnectionError
from ..models.record import TableRecord

logger = logging.getLogger(__name__)


class BaseLoader(ABC):
    """
    Base class for target writers.

    Loaders insert batches of records into the target database. Every
    batch is written inside a transaction obtained from ``transaction()``:
    either all of its records are stored or none are. Writes must ignore
    rows whose primary key already exists so that a migration can be
    re-run safely.
    """

    def __init__(self, dry_run: bool = False):
        """
        Initialize the loader.

        Args:
            dry_run: If True, simulate without making changes
        """
        self.dry_run = dry_run

    async def connect(self) -> None:
        """Open connections to the target."""
        pass

    async def close(self) -> None:
        """Release connections to the target."""
        pass

    @abstractmethod
    def transaction(self) -> AsyncContextManager[Any]:
        """
        Open a transaction on the target.

        The context manager yields a transaction handle, commits on normal
        exit and rolls back if the block raises.
        """
        pass

    @abstractmethod
    async def write_batch(self, table: str, records: List[TableRecord], tx: Any) -> None:
        """
        Insert records into a table within an open transaction.

        Args:
            table: Target table name
            records: Records to insert, in order
            tx: Handle yielded by transaction()
        """
        pass

    async def ping(self) -> None:
        """Run a trivial round trip, raising TargetConnectionError on failure."""
        pass

    async def check_connection(self) -> bool:
        """Validate the connection to the target."""
        try:
            await self.ping()
        except TargetConnectionError as e:
            logger.error(f"Target connection check failed: {e}")
            return False
        return True

    def writer(self, table: str) -> Callable[[List[TableRecord], Any], Awaitable[None]]:
        """Bind write_batch() to a table, for use as a MigrationUnit write operation."""
        async def write_table(records: List[TableRecord], tx: Any) -> None:
            await self.write_batch(table, records, tx)
        return write_table

    async def __aenter__(self) -> "BaseLoader":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
