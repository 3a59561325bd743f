"""
OTC Advisor Database Migration Toolkit

Maintenance tooling for the OTC drug advisor database: moves the application
data from the SQLite development database into PostgreSQL.

Supports:
- Point-in-time backup of the SQLite file before any write
- Table-by-table migration in foreign key dependency order
- Batched, transactional inserts that are safe to re-run
- Per-table statistics and a final migration report
- pg_dump backups of the PostgreSQL database
- Seeding literal records through the same write path
"""

__version__ = "0.1.0"
