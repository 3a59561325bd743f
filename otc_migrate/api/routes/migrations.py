"""Migration execution and status endpoints."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from ...exceptions import ConfigError
from ...extractors.base import BaseExtractor
from ...loaders.base import BaseLoader
from ...models.migration import MigrationConfig, MigrationRun, MigrationStatus
from ...orchestrator import run_from_config
from ..deps import (
    ExtractorFactory,
    LoaderFactory,
    get_config,
    get_extractor_factory,
    get_loader_factory,
)
from ..models import (
    MigrationListResponse,
    MigrationResponse,
    MigrationStartRequest,
    MigrationStartResponse,
)
from ..storage import migration_storage

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=MigrationStartResponse, status_code=202)
async def start_migration(
    data: MigrationStartRequest,
    background_tasks: BackgroundTasks,
    config: MigrationConfig = Depends(get_config),
    loader_factory: LoaderFactory = Depends(get_loader_factory),
    extractor_factory: ExtractorFactory = Depends(get_extractor_factory),
):
    """Start a migration run in the background."""
    active = migration_storage.active_run()
    if active is not None:
        raise HTTPException(
            status_code=409,
            detail=f"Migration {active.id} is already running"
        )

    if data.dry_run:
        config.dry_run = True
    if data.tables:
        config.tables = list(data.tables)
    if data.batch_size is not None:
        config.batch_size = data.batch_size

    try:
        config.validate()
    except ConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))

    run = migration_storage.add(MigrationRun(dry_run=config.dry_run))
    background_tasks.add_task(
        run_migration_task,
        run,
        config,
        extractor_factory(config),
        loader_factory(config),
    )

    return MigrationStartResponse(status="started", migration_id=run.id)


@router.get("", response_model=MigrationListResponse)
async def list_migrations():
    """List all migration runs, newest first."""
    migrations = migration_storage.list_all()
    return MigrationListResponse(migrations=migrations, total=len(migrations))


@router.get("/{migration_id}", response_model=MigrationResponse)
async def get_migration(migration_id: str):
    """Get a specific migration run with its report."""
    migration = migration_storage.get(migration_id)
    if not migration:
        raise HTTPException(status_code=404, detail="Migration not found")
    return migration


async def run_migration_task(
    run: MigrationRun,
    config: MigrationConfig,
    extractor: BaseExtractor,
    loader: BaseLoader
) -> None:
    """Background task executing a migration run."""
    try:
        _, report = await run_from_config(
            config,
            migration_run=run,
            extractor=extractor,
            loader=loader,
        )
        migration_storage.set_report(run.id, report.to_dict())
    except Exception as e:
        logger.error(f"Migration {run.id} failed: {e}")
        if run.status != MigrationStatus.FAILED:
            run.status = MigrationStatus.FAILED
            run.errors.append(str(e))
