"""Validation service for source rows."""

import logging
from typing import Any, Dict, List, Mapping, Optional, Type

from pydantic import ValidationError

from ..exceptions import RecordValidationError
from ..models.record import TableRecord
from ..models.schema import get_record_model

logger = logging.getLogger(__name__)


class RecordValidator:
    """
    Validator for rows read from a source table.

    Each table has a declared pydantic model; rows are validated against it
    before they are handed to the orchestrator. Custom models can be
    registered for tables that are not part of the application schema.
    """

    def __init__(self, schemas: Optional[Mapping[str, Type[TableRecord]]] = None):
        """
        Initialize the validator.

        Args:
            schemas: Optional table -> model overrides
        """
        self._schemas: Dict[str, Type[TableRecord]] = dict(schemas or {})

    def register_schema(self, table: str, model: Type[TableRecord]) -> None:
        """Register a model for a table."""
        self._schemas[table] = model

    def model_for(self, table: str) -> Type[TableRecord]:
        return self._schemas.get(table) or get_record_model(table)

    def validate_rows(self, table: str, rows: List[Dict[str, Any]]) -> List[TableRecord]:
        """
        Validate raw rows for a table.

        Args:
            table: Table the rows were read from
            rows: Column -> value mappings, in source order

        Returns:
            Validated records, in the same order

        Raises:
            RecordValidationError: on the first row that does not match
        """
        model = self.model_for(table)
        records = []

        for index, row in enumerate(rows):
            try:
                records.append(model.model_validate(row))
            except ValidationError as e:
                error = RecordValidationError.from_pydantic(table, index, e)
                logger.error(str(error))
                raise error from e

        return records
