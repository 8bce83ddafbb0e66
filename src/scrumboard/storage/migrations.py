"""Database migration handling with automatic upgrade on startup"""

import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url

from ..config import DatabaseSettings
from ..logging import get_logger

logger = get_logger(__name__)


def get_migration_config(settings: DatabaseSettings) -> Config:
    """Get Alembic configuration"""
    # This file is in scrumboard/storage/, alembic.ini sits in scrumboard/
    package_root = Path(__file__).parent.parent

    alembic_ini = package_root / "alembic.ini"
    migrations_dir = package_root / "migrations"

    if not alembic_ini.exists():
        raise FileNotFoundError(
            f"alembic.ini not found at {alembic_ini}. "
            "This indicates an incomplete installation. "
            "Please reinstall scrumboard."
        )

    if not migrations_dir.exists():
        raise FileNotFoundError(
            f"migrations directory not found at {migrations_dir}. "
            "This indicates an incomplete installation. "
            "Please reinstall scrumboard."
        )

    alembic_cfg = Config(str(alembic_ini))
    alembic_cfg.set_main_option("script_location", str(migrations_dir))
    # ConfigParser interpolation treats % specially
    alembic_cfg.set_main_option("sqlalchemy.url", settings.url.replace("%", "%%"))
    return alembic_cfg


def sqlite_path(settings: DatabaseSettings) -> Optional[Path]:
    """Filesystem path of a file-backed SQLite database, else None"""
    url = make_url(settings.url)
    if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
        return None
    return Path(url.database)


def current_revision(settings: DatabaseSettings) -> Optional[str]:
    engine = create_engine(settings.url)
    try:
        with engine.connect() as conn:
            return MigrationContext.configure(conn).get_current_revision()
    finally:
        engine.dispose()


def head_revision(settings: DatabaseSettings) -> Optional[str]:
    script_dir = ScriptDirectory.from_config(get_migration_config(settings))
    return script_dir.get_current_head()


def needs_migration(settings: DatabaseSettings) -> bool:
    """Check if database needs migration"""
    db_path = sqlite_path(settings)
    if db_path is not None and not db_path.exists():
        return True  # New database needs initial migration

    try:
        return current_revision(settings) != head_revision(settings)
    except Exception as e:
        logger.warning("migration_status_check_failed", error=str(e))
        return True  # Assume migration needed if we can't check


def backup_database(settings: DatabaseSettings) -> Optional[Path]:
    """Copy an existing SQLite database file aside before migrating"""
    db_path = sqlite_path(settings)
    if db_path is None or not db_path.exists():
        return None

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = db_path.with_name(f"{db_path.name}.backup.{timestamp}")
    try:
        shutil.copy2(db_path, backup_path)
        return backup_path
    except OSError as e:
        logger.warning("database_backup_failed", path=str(db_path), error=str(e))
        return None


def run_migrations(settings: DatabaseSettings) -> None:
    """Run any pending migrations"""
    command.upgrade(get_migration_config(settings), "head")


def initialize_database(settings: DatabaseSettings) -> None:
    """Initialize database on first run or run migrations on upgrade"""
    db_path = sqlite_path(settings)
    if db_path is not None:
        db_path.parent.mkdir(parents=True, exist_ok=True)

    if db_path is not None and not db_path.exists():
        # Fresh installation - create latest schema
        logger.info("database_initializing", path=str(db_path))
        run_migrations(settings)
        logger.info("database_initialized", path=str(db_path))
    elif needs_migration(settings):
        logger.info("database_migration_required")
        backup_path = backup_database(settings) if settings.backup_before_migrate else None
        try:
            run_migrations(settings)
        except Exception as e:
            logger.error(
                "database_migration_failed",
                error=str(e),
                backup=str(backup_path) if backup_path else None,
            )
            raise
        logger.info("database_migrated", backup=str(backup_path) if backup_path else None)
    else:
        logger.info("database_up_to_date")
