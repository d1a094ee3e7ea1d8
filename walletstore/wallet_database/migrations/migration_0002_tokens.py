import json
try:
    import pysqlite3 as sqlite3
except ModuleNotFoundError:
    import sqlite3 # type: ignore
import time

MIGRATION = 2

def execute(conn: sqlite3.Connection) -> None:
    conn.execute("CREATE TABLE IF NOT EXISTS Tokens ("
        "token_id TEXT NOT NULL PRIMARY KEY,"
        "name TEXT NOT NULL,"
        "symbol TEXT NOT NULL,"
        "date_created INTEGER NOT NULL,"
        "date_updated INTEGER NOT NULL"
    ")")

    date_updated = int(time.time())
    conn.execute("UPDATE WalletData SET value=?, date_updated=? WHERE key=?",
        [json.dumps(MIGRATION), date_updated, "migration"])
