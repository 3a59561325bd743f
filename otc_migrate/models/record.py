"""Record models for migration data."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Union

from dateutil import parser as date_parser
from pydantic import BaseModel, BeforeValidator, ConfigDict


def parse_prisma_datetime(value: Any) -> Any:
    """
    Normalize a DateTime column value as Prisma stores it in SQLite.

    Prisma writes DateTime either as epoch milliseconds or as ISO text.
    PostgreSQL ``timestamp(3)`` columns expect naive UTC datetimes.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        parsed = datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
    else:
        parsed = date_parser.parse(str(value))

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


PrismaDateTime = Annotated[datetime, BeforeValidator(parse_prisma_datetime)]


class TableRecord(BaseModel):
    """
    A single row of an application table.

    Subclasses declare the columns the application depends on. Undeclared
    columns are kept as extra fields and copied verbatim.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Union[int, str]

    def to_row(self) -> Dict[str, Any]:
        """Column -> value mapping ready for insertion."""
        return self.model_dump(by_alias=True, exclude_unset=True)


@dataclass
class RecordBatch:
    """A contiguous slice of a table's records, written in one transaction."""
    index: int  # 1-based position within the table
    table: str
    records: List[TableRecord] = field(default_factory=list)
    offset: int = 0  # index of the first record in the fetched sequence

    def __len__(self) -> int:
        return len(self.records)


def partition(
    table: str,
    records: List[TableRecord],
    batch_size: int,
    start_index: int = 1
) -> List[RecordBatch]:
    """
    Split records into contiguous batches of at most ``batch_size``.

    Concatenating the batches reproduces ``records`` exactly.
    """
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    batches = []
    for number, offset in enumerate(range(0, len(records), batch_size), start=start_index):
        batches.append(RecordBatch(
            index=number,
            table=table,
            records=records[offset:offset + batch_size],
            offset=offset,
        ))
    return batches
