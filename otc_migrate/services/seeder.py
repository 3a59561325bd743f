"""Seeding literal records (admin users, drugs, FAQs, articles) into the target."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..exceptions import ConfigError
from ..extractors.base import StaticExtractor
from ..loaders.base import BaseLoader
from ..models.migration import DEFAULT_BATCH_SIZE, MigrationRun
from ..models.schema import TABLE_SCHEMAS, order_tables
from ..orchestrator import MigrationOrchestrator, build_units

logger = logging.getLogger(__name__)


def load_seed_file(path: Union[str, Path]) -> Dict[str, List[Dict[str, Any]]]:
    """
    Load seed data from a JSON file.

    The file holds an object mapping table names to lists of records.
    Records need explicit ids so that re-seeding skips existing rows.

    Raises:
        ConfigError: if the file is not valid seed data
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read seed file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("Seed file must contain an object of table -> records")

    unknown = sorted(t for t in data if t not in TABLE_SCHEMAS)
    if unknown:
        raise ConfigError(f"Unknown tables in seed file: {', '.join(unknown)}")

    for table, records in data.items():
        if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
            raise ConfigError(f"Seed data for {table} must be a list of objects")

    return data


async def seed(
    records_by_table: Dict[str, List[Dict[str, Any]]],
    loader: BaseLoader,
    batch_size: int = DEFAULT_BATCH_SIZE,
    output_dir: Optional[Union[str, Path]] = None
) -> MigrationRun:
    """
    Write seed records through the migration write path.

    Tables are written in dependency order regardless of their order in
    ``records_by_table``.
    """
    tables = order_tables(list(records_by_table))
    logger.info(f"Seeding {', '.join(tables) or 'nothing'}")

    extractor = StaticExtractor(records_by_table)
    orchestrator = MigrationOrchestrator(loader, batch_size=batch_size, output_dir=output_dir)
    return await orchestrator.run(build_units(tables, extractor, loader), name="seed")
