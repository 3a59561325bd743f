"""SQLite source reader."""

import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .base import BaseExtractor
from ..models.schema import quote_identifier
from ..services.validator import RecordValidator

logger = logging.getLogger(__name__)


class SQLiteExtractor(BaseExtractor):
    """
    Extractor for the application's SQLite database.

    The database is opened read-only. Blocking sqlite3 calls run in the
    default executor so the event loop is never held by a query. A missing
    database file reads as empty tables.
    """

    def __init__(
        self,
        db_path: Union[str, Path],
        validator: Optional[RecordValidator] = None
    ):
        """
        Initialize the SQLite extractor.

        Args:
            db_path: Path to the SQLite database file
            validator: Validator for source rows
        """
        super().__init__(validator)
        self.db_path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._missing_logged = False

    @property
    def exists(self) -> bool:
        return self.db_path.is_file()

    def _get_connection(self) -> Optional[sqlite3.Connection]:
        """Open the read-only connection on first use."""
        if self._conn is None:
            if not self.exists:
                if not self._missing_logged:
                    logger.warning(f"SQLite database not found: {self.db_path}, reading empty tables")
                    self._missing_logged = True
                return None

            uri = f"{self.db_path.resolve().as_uri()}?mode=ro"
            self._conn = sqlite3.connect(uri, uri=True, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            logger.info(f"Opened SQLite database (read-only): {self.db_path}")
        return self._conn

    def _select_all(self, table: str) -> List[Dict[str, Any]]:
        conn = self._get_connection()
        if conn is None:
            return []

        cursor = conn.execute(f"SELECT * FROM {quote_identifier(table)} ORDER BY rowid")
        try:
            return [dict(row) for row in cursor.fetchall()]
        finally:
            cursor.close()

    async def read_rows(self, table: str) -> List[Dict[str, Any]]:
        """Read all rows of a table in insertion order."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._select_all, table)

    async def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
