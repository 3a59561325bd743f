"""Shared FastAPI dependencies."""

from typing import Callable

from ..extractors.base import BaseExtractor
from ..extractors.sqlite_extractor import SQLiteExtractor
from ..loaders.base import BaseLoader
from ..loaders.postgres_loader import PostgresLoader
from ..models.migration import MigrationConfig

LoaderFactory = Callable[[MigrationConfig], BaseLoader]
ExtractorFactory = Callable[[MigrationConfig], BaseExtractor]


def get_config() -> MigrationConfig:
    """Configuration from the environment, read per request."""
    return MigrationConfig.from_env()


def _postgres_loader(config: MigrationConfig) -> BaseLoader:
    return PostgresLoader(config.database_url or "", dry_run=config.dry_run)


def _sqlite_extractor(config: MigrationConfig) -> BaseExtractor:
    return SQLiteExtractor(config.sqlite_path)


def get_loader_factory() -> LoaderFactory:
    return _postgres_loader


def get_extractor_factory() -> ExtractorFactory:
    return _sqlite_extractor
