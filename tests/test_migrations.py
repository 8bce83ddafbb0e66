"""Test database migration functionality"""

import pytest
from sqlalchemy import create_engine, inspect

from scrumboard.config import DatabaseSettings
from scrumboard.models import Base
from scrumboard.storage.migrations import (
    backup_database,
    current_revision,
    head_revision,
    initialize_database,
    needs_migration,
    sqlite_path,
)


@pytest.fixture
def settings(temp_dir):
    return DatabaseSettings(url=f"sqlite:///{temp_dir}/.scrumboard/database.db")


@pytest.fixture
def empty_database(settings):
    """Create an empty SQLite database file"""
    db_path = sqlite_path(settings)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    db_path.touch()
    return db_path


class TestMigrationSystem:
    """Test the automatic migration system"""

    def test_sqlite_path(self, settings, temp_dir):
        assert sqlite_path(settings) == temp_dir / ".scrumboard" / "database.db"
        assert sqlite_path(DatabaseSettings(url="sqlite:///:memory:")) is None
        assert sqlite_path(DatabaseSettings(url="postgresql://localhost/scrumboard")) is None

    def test_needs_migration_no_database(self, settings):
        assert needs_migration(settings) is True

    def test_needs_migration_empty_database(self, settings, empty_database):
        assert needs_migration(settings) is True

    def test_backup_database_nonexistent(self, settings):
        assert backup_database(settings) is None

    def test_backup_database_exists(self, settings, empty_database):
        empty_database.write_bytes(b"test content")

        backup_path = backup_database(settings)

        assert backup_path is not None
        assert backup_path.exists()
        assert "backup" in backup_path.name
        assert backup_path.read_bytes() == b"test content"

    def test_initialize_database_fresh(self, settings):
        """Fresh install creates the directory and the full schema"""
        initialize_database(settings)

        assert sqlite_path(settings).exists()
        assert needs_migration(settings) is False
        assert current_revision(settings) == head_revision(settings)

    def test_initialize_database_with_empty_file(self, settings, empty_database):
        assert empty_database.stat().st_size == 0

        initialize_database(settings)

        assert current_revision(settings) == head_revision(settings)
        # Existing (empty) file was copied aside first
        backups = list(empty_database.parent.glob("database.db.backup.*"))
        assert len(backups) == 1

    def test_initialize_database_idempotent(self, settings):
        initialize_database(settings)
        initialize_database(settings)
        assert needs_migration(settings) is False

    def test_migrated_schema_matches_models(self, settings):
        """Every model table, column and index exists after migrating"""
        initialize_database(settings)

        engine = create_engine(settings.url)
        try:
            inspector = inspect(engine)
            tables = set(inspector.get_table_names())
            assert set(Base.metadata.tables) | {"alembic_version"} == tables

            for name, table in Base.metadata.tables.items():
                columns = {c["name"] for c in inspector.get_columns(name)}
                assert columns == set(table.columns.keys()), name

                indexes = {i["name"] for i in inspector.get_indexes(name)}
                for index in table.indexes:
                    assert index.name in indexes, index.name
        finally:
            engine.dispose()

    def test_one_active_sprint_index_is_partial(self, settings):
        initialize_database(settings)

        engine = create_engine(settings.url)
        try:
            with engine.connect() as conn:
                sql = conn.exec_driver_sql(
                    "SELECT sql FROM sqlite_master WHERE name = 'uq_sprints_one_active_per_project'"
                ).scalar()
        finally:
            engine.dispose()

        assert "UNIQUE" in sql.upper()
        assert "WHERE" in sql.upper()
