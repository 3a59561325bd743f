import pytest

from otc_migrate.exceptions import ConfigError
from otc_migrate.models.migration import DEFAULT_BATCH_SIZE, MigrationConfig
from otc_migrate.models.schema import MIGRATION_ORDER


def test_defaults():
    config = MigrationConfig.from_env({})

    assert config.sqlite_path == "prisma/dev.db"
    assert config.backup_dir == "backups"
    assert config.batch_size == DEFAULT_BATCH_SIZE == 500
    assert config.tables == MIGRATION_ORDER
    assert config.database_url is None
    assert not config.strict
    assert not config.dry_run


def test_from_env():
    config = MigrationConfig.from_env({
        "SQLITE_PATH": "/data/dev.db",
        "DATABASE_URL": "postgresql://otc:secret@db/otc",
        "BACKUP_DIR": "/data/backups",
        "MIGRATION_BATCH_SIZE": "100",
        "MIGRATION_TABLES": "Drug, FAQ",
        "MIGRATION_STRICT": "true",
        "MIGRATION_DRY_RUN": "1",
        "MIGRATION_OUTPUT_DIR": "/data/reports",
        "LOG_LEVEL": "debug",
    })

    assert config.sqlite_path == "/data/dev.db"
    assert config.database_url == "postgresql://otc:secret@db/otc"
    assert config.backup_dir == "/data/backups"
    assert config.batch_size == 100
    assert config.tables == ["Drug", "FAQ"]
    assert config.strict
    assert config.dry_run
    assert config.output_dir == "/data/reports"
    assert config.log_level == "DEBUG"


def test_non_numeric_batch_size():
    with pytest.raises(ConfigError, match="MIGRATION_BATCH_SIZE"):
        MigrationConfig.from_env({"MIGRATION_BATCH_SIZE": "lots"})


def test_validate_requires_database_url():
    with pytest.raises(ConfigError, match="DATABASE_URL"):
        MigrationConfig().validate()

    MigrationConfig(dry_run=True).validate()


@pytest.mark.parametrize("batch_size", [0, -5])
def test_validate_rejects_non_positive_batch_size(batch_size):
    config = MigrationConfig(database_url="postgresql://otc@db/otc", batch_size=batch_size)

    with pytest.raises(ConfigError, match="Batch size"):
        config.validate()


def test_validate_rejects_empty_table_list():
    with pytest.raises(ConfigError, match="No tables"):
        MigrationConfig(database_url="postgresql://otc@db/otc", tables=[]).validate()


def test_to_dict_hides_credentials():
    data = MigrationConfig(database_url="postgresql://otc:secret@db/otc").to_dict()

    assert data["database_configured"] is True
    assert "secret" not in str(data)
