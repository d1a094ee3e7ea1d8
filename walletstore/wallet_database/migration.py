import json
try:
    import pysqlite3 as sqlite3
except ModuleNotFoundError:
    import sqlite3 # type: ignore

from ..constants import MIGRATION_CURRENT, MIGRATION_FIRST
from ..exceptions import DatabaseMigrationError
from ..logs import logs


logger = logs.get_logger("database-migration")


def _get_migration(db: sqlite3.Connection) -> int:
    cursor = db.execute("SELECT value FROM WalletData WHERE key='migration'")
    row = cursor.fetchone()
    if row is None:
        raise DatabaseMigrationError("wallet database migration metadata not present")
    return json.loads(row[0])

def _ensure_matching_migration(db: sqlite3.Connection, expected_migration: int) -> None:
    migration = _get_migration(db)
    if migration != expected_migration:
        raise DatabaseMigrationError("wallet database migration mismatch, expected "
            f"{expected_migration}, got {migration}")


def is_database_created(db: sqlite3.Connection) -> bool:
    cursor = db.execute("SELECT name FROM sqlite_master WHERE type='table' AND name='WalletData'")
    return cursor.fetchone() is not None


def create_database(db: sqlite3.Connection) -> None:
    from . import migrations
    with db:
        migrations.migration_0001_create_database.execute(db)
    _ensure_matching_migration(db, MIGRATION_FIRST)


def update_database(db: sqlite3.Connection) -> None:
    # This will error if the database has not been created correctly with the metadata.
    version = _get_migration(db)
    if version > MIGRATION_CURRENT:
        raise DatabaseMigrationError(f"wallet database migration {version} is newer than "
            f"the supported {MIGRATION_CURRENT}")

    from . import migrations
    with db:
        if version == 1:
            logger.debug("applying database migration %d", version + 1)
            migrations.migration_0002_tokens.execute(db)
            version += 1

    _ensure_matching_migration(db, MIGRATION_CURRENT)


def prepare_database(db: sqlite3.Connection) -> None:
    if not is_database_created(db):
        create_database(db)
    update_database(db)
