import os
from typing import Generator

import pytest
try:
    import pysqlite3 as sqlite3
except ModuleNotFoundError:
    import sqlite3 # type: ignore[no-redef]

from electrumsv_database.sqlite import DatabaseContext

from walletstore.constants import MIGRATION_CURRENT
from walletstore.exceptions import DatabaseMigrationError
from walletstore.wallet_database import functions as db_functions
from walletstore.wallet_database.migration import (create_database, is_database_created,
    prepare_database, update_database)
from walletstore.wallet_database.types import TokenRow, WalletDataRow


@pytest.fixture
def db_context() -> Generator[DatabaseContext, None, None]:
    unique_name = os.urandom(8).hex()
    db_filename = DatabaseContext.shared_memory_uri(unique_name)
    db_context = DatabaseContext(db_filename)
    yield db_context
    db_context.close()


@pytest.fixture
def db(db_context: DatabaseContext) -> Generator[sqlite3.Connection, None, None]:
    # We hold onto an open connection to ensure that the database persists for the
    # lifetime of the test.
    connection = db_context.acquire_connection()
    yield connection
    db_context.release_connection(connection)


def test_prepare_database(db: sqlite3.Connection) -> None:
    assert not is_database_created(db)
    prepare_database(db)
    assert is_database_created(db)
    assert db_functions.read_wallet_data("migration", db) == MIGRATION_CURRENT
    # Preparing an up to date database changes nothing.
    prepare_database(db)
    assert db_functions.read_wallet_data("migration", db) == MIGRATION_CURRENT


def test_update_database_from_first_migration(db: sqlite3.Connection) -> None:
    create_database(db)
    assert db_functions.read_wallet_data("migration", db) == 1
    update_database(db)
    assert db_functions.read_wallet_data("migration", db) == MIGRATION_CURRENT
    assert db_functions.read_tokens(db) == []


def test_update_database_newer_migration(db: sqlite3.Connection) -> None:
    prepare_database(db)
    with db:
        db_functions.update_wallet_datas([ WalletDataRow("migration", MIGRATION_CURRENT + 1) ],
            db)
    with pytest.raises(DatabaseMigrationError):
        update_database(db)


def test_update_database_no_metadata(db: sqlite3.Connection) -> None:
    prepare_database(db)
    with db:
        db_functions.delete_wallet_data("migration", db)
    with pytest.raises(DatabaseMigrationError):
        update_database(db)


def test_wallet_datas(db: sqlite3.Connection) -> None:
    prepare_database(db)
    assert db_functions.read_wallet_data("A", db) is None
    with db:
        db_functions.update_wallet_datas([ WalletDataRow("A", { "b": [ 1 ] }) ], db)
    assert db_functions.read_wallet_data("A", db) == { "b": [ 1 ] }
    with db:
        db_functions.update_wallet_datas([ WalletDataRow("A", "C") ], db)
    assert db_functions.read_wallet_data("A", db) == "C"
    with db:
        db_functions.delete_wallet_data("A", db)
    assert db_functions.read_wallet_data("A", db) is None


def test_tokens(db: sqlite3.Connection) -> None:
    prepare_database(db)
    row = TokenRow("00", "Hathor", "HTR")
    with db:
        db_functions.create_or_update_tokens([ row ], db)
    assert db_functions.read_token("00", db) == row
    assert db_functions.read_token("01", db) is None
    assert db_functions.read_tokens(db) == [ row ]
    with db:
        assert db_functions.delete_token("00", db)
        assert not db_functions.delete_token("00", db)
    assert db_functions.read_tokens(db) == []


@pytest.mark.asyncio
async def test_functions_in_database_thread(db_context: DatabaseContext,
        db: sqlite3.Connection) -> None:
    prepare_database(db)
    await db_context.run_in_thread_async(db_functions.update_wallet_datas,
        [ WalletDataRow("A", 1) ])
    assert await db_context.run_in_thread_async(db_functions.read_wallet_data, "A") == 1
