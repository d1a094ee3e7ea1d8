import json
try:
    import pysqlite3 as sqlite3
except ModuleNotFoundError:
    import sqlite3 # type: ignore
import time
from typing import Any, Iterable, Optional

from .types import TokenRow, WalletDataRow


# Functions taking a `db` keyword argument are executed by the database context's writer
# thread, and are called with `DatabaseContext.run_in_thread_async`.

def update_wallet_datas(entries: Iterable[WalletDataRow],
        db: Optional[sqlite3.Connection]=None) -> None:
    assert db is not None
    sql = ("INSERT INTO WalletData (key, value, date_created, date_updated) VALUES (?, ?, ?, ?) "
        "ON CONFLICT(key) DO UPDATE SET value=excluded.value, date_updated=excluded.date_updated")
    timestamp = int(time.time())
    rows = []
    for entry in entries:
        assert type(entry.key) is str, f"bad key '{entry.key}'"
        rows.append((entry.key, json.dumps(entry.value), timestamp, timestamp))
    db.executemany(sql, rows)


def delete_wallet_data(key: str, db: Optional[sqlite3.Connection]=None) -> None:
    assert db is not None
    db.execute("DELETE FROM WalletData WHERE key=?", (key,))


def read_wallet_data(key: str, db: Optional[sqlite3.Connection]=None) -> Any:
    assert db is not None
    row = db.execute("SELECT value FROM WalletData WHERE key=?", (key,)).fetchone()
    if row is None:
        return None
    return json.loads(row[0])



def create_or_update_tokens(entries: Iterable[TokenRow],
        db: Optional[sqlite3.Connection]=None) -> None:
    assert db is not None
    sql = ("INSERT INTO Tokens (token_id, name, symbol, date_created, date_updated) "
        "VALUES (?, ?, ?, ?, ?) "
        "ON CONFLICT(token_id) DO UPDATE SET name=excluded.name, symbol=excluded.symbol, "
            "date_updated=excluded.date_updated")
    timestamp = int(time.time())
    db.executemany(sql, [ (entry.token_id, entry.name, entry.symbol, timestamp, timestamp)
        for entry in entries ])


def delete_token(token_id: str, db: Optional[sqlite3.Connection]=None) -> bool:
    assert db is not None
    cursor = db.execute("DELETE FROM Tokens WHERE token_id=?", (token_id,))
    return cursor.rowcount == 1


def read_token(token_id: str, db: Optional[sqlite3.Connection]=None) -> Optional[TokenRow]:
    assert db is not None
    row = db.execute("SELECT token_id, name, symbol FROM Tokens WHERE token_id=?",
        (token_id,)).fetchone()
    return TokenRow(*row) if row is not None else None


def read_tokens(db: Optional[sqlite3.Connection]=None) -> list[TokenRow]:
    assert db is not None
    cursor = db.execute("SELECT token_id, name, symbol FROM Tokens "
        "ORDER BY date_created, token_id")
    return [ TokenRow(*row) for row in cursor.fetchall() ]
