"""FastAPI application entry point."""

import os

from dotenv import load_dotenv
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..exceptions import MigrationError
from ..models.migration import MigrationConfig
from .deps import LoaderFactory, get_config, get_loader_factory
from .models import HealthResponse
from .routes import migrations

load_dotenv()

app = FastAPI(
    title="OTC Advisor Database Admin API",
    description="Start SQLite to PostgreSQL migrations and inspect their reports",
    version=__version__,
)

# Comma-separated origins, all allowed when unset
cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(migrations.router, prefix="/api/migrations", tags=["migrations"])


@app.get("/api/health", response_model=HealthResponse)
async def health_check(
    config: MigrationConfig = Depends(get_config),
    loader_factory: LoaderFactory = Depends(get_loader_factory),
):
    """Database health check: runs SELECT 1 against the target."""
    if not config.database_url:
        return JSONResponse(
            status_code=500,
            content={"ok": False, "error": "DATABASE_URL environment variable is not set"},
        )

    loader = loader_factory(config)
    try:
        await loader.connect()
        await loader.ping()
    except MigrationError as e:
        return JSONResponse(status_code=500, content={"ok": False, "error": str(e) or "db error"})
    finally:
        await loader.close()

    return HealthResponse(ok=True)
