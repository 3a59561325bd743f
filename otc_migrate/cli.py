"""Command line interface for the migration toolkit."""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from .exceptions import ConfigError, MigrationError
from .loaders.postgres_loader import PostgresLoader
from .models.migration import MigrationConfig
from .orchestrator import run_from_config
from .services.backup import PostgresDumper, parse_database_url, restore_command
from .services.report import MigrationReport, ReportAggregator
from .services.seeder import load_seed_file, seed

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_RECORDS_FAILED = 2

COMMANDS = ("run", "backup-db", "seed", "serve")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="otc-migrate",
        description="OTC advisor database tools - migrate SQLite data into PostgreSQL"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Run migration
    run_parser = subparsers.add_parser("run", help="Back up SQLite and migrate it into PostgreSQL (default)")
    run_parser.add_argument("--sqlite", help="Path to the SQLite database (env SQLITE_PATH)")
    run_parser.add_argument("--database-url", help="PostgreSQL URL (env DATABASE_URL)")
    run_parser.add_argument("--backup-dir", help="Backup directory (env BACKUP_DIR)")
    run_parser.add_argument("--batch-size", type=int, help="Records per transaction (env MIGRATION_BATCH_SIZE)")
    run_parser.add_argument("--tables", help="Comma-separated tables to migrate, in order")
    run_parser.add_argument("--output-dir", help="Write a JSON report here (env MIGRATION_OUTPUT_DIR)")
    run_parser.add_argument("--strict", action="store_true", help="Exit with status 2 if any record failed")
    run_parser.add_argument("--dry-run", action="store_true", help="Read and validate without writing")
    run_parser.add_argument("--verbose", "-v", action="store_true", default=argparse.SUPPRESS,
                            help="Verbose output")

    # Backup PostgreSQL
    backup_parser = subparsers.add_parser("backup-db", help="pg_dump the PostgreSQL database")
    backup_parser.add_argument("--database-url", help="PostgreSQL URL (env DATABASE_URL)")
    backup_parser.add_argument("--backup-dir", help="Backup directory (env BACKUP_DIR)")

    # Seed
    seed_parser = subparsers.add_parser("seed", help="Insert literal records from a JSON file")
    seed_parser.add_argument("--file", required=True, help="JSON file of table -> records")
    seed_parser.add_argument("--database-url", help="PostgreSQL URL (env DATABASE_URL)")
    seed_parser.add_argument("--batch-size", type=int, help="Records per transaction")
    seed_parser.add_argument("--dry-run", action="store_true", help="Validate without writing")

    # Admin API
    serve_parser = subparsers.add_parser("serve", help="Run the admin HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port")

    return parser


def config_from_args(args: argparse.Namespace) -> MigrationConfig:
    """Environment configuration with command line overrides applied."""
    config = MigrationConfig.from_env()

    if getattr(args, "sqlite", None):
        config.sqlite_path = args.sqlite
    if getattr(args, "database_url", None):
        config.database_url = args.database_url
    if getattr(args, "backup_dir", None):
        config.backup_dir = args.backup_dir
    if getattr(args, "batch_size", None) is not None:
        config.batch_size = args.batch_size
    if getattr(args, "tables", None):
        config.tables = [t.strip() for t in args.tables.split(",") if t.strip()]
    if getattr(args, "output_dir", None):
        config.output_dir = args.output_dir
    if getattr(args, "strict", False):
        config.strict = True
    if getattr(args, "dry_run", False):
        config.dry_run = True

    return config


def exit_code_for(report: MigrationReport, strict: bool) -> int:
    """
    Process exit status for a finished migration.

    Best-effort mode always exits 0 once the run completes; strict mode
    exits 2 if any record failed or any table could not be read.
    """
    if strict and (not report.success or report.has_errors):
        return EXIT_RECORDS_FAILED
    return EXIT_OK


def run_migration(config: MigrationConfig) -> int:
    """Run the SQLite to PostgreSQL migration and print the report."""
    print("Starting SQLite to PostgreSQL migration...")
    run, report = asyncio.run(run_from_config(config))

    print()
    print(report.render())
    if run.backup_path:
        print(f"\nSQLite backup: {run.backup_path}")
    if run.duration_seconds is not None:
        print(f"Duration: {run.duration_seconds:.2f} seconds")

    return exit_code_for(report, config.strict)


def run_backup(config: MigrationConfig) -> int:
    """Dump the PostgreSQL database with pg_dump."""
    if not config.database_url:
        raise ConfigError("DATABASE_URL environment variable is not set")

    target = parse_database_url(config.database_url)
    print("Starting database backup...")
    backup_path = PostgresDumper(config.backup_dir).dump(target)

    print("Database backup completed successfully!")
    print(f"Backup location: {backup_path}")
    print("\nTo restore this backup, use:")
    print(restore_command(target, backup_path))
    return EXIT_OK


def run_seed(args: argparse.Namespace, config: MigrationConfig) -> int:
    """Seed literal records into PostgreSQL."""
    config.validate()

    records_by_table = load_seed_file(args.file)
    loader = PostgresLoader(config.database_url or "", dry_run=config.dry_run)

    async def _seed():
        try:
            return await seed(records_by_table, loader, batch_size=config.batch_size)
        finally:
            await loader.close()

    run = asyncio.run(_seed())
    report = ReportAggregator().aggregate(run.stats)
    print(report.render())
    return exit_code_for(report, config.strict)


def run_server(args: argparse.Namespace) -> int:
    """Serve the admin API."""
    import uvicorn

    uvicorn.run("otc_migrate.api.main:app", host=args.host, port=args.port)
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    argv = list(sys.argv[1:] if argv is None else argv)
    if not any(arg in COMMANDS for arg in argv) and not any(arg in ("-h", "--help") for arg in argv):
        argv = ["run"] + argv

    args = build_parser().parse_args(argv)

    load_dotenv()

    try:
        config = config_from_args(args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_FATAL

    # Set up logging
    log_level = logging.DEBUG if getattr(args, "verbose", False) else getattr(logging, config.log_level, logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    try:
        if args.command == "backup-db":
            return run_backup(config)
        elif args.command == "seed":
            return run_seed(args, config)
        elif args.command == "serve":
            return run_server(args)
        else:
            return run_migration(config)
    except MigrationError as e:
        logger.error(f"Migration script failed: {e}")
        print(f"Migration failed: {e}", file=sys.stderr)
        return EXIT_FATAL


if __name__ == "__main__":
    sys.exit(main())
