import json
try:
    import pysqlite3 as sqlite3
except ModuleNotFoundError:
    import sqlite3 # type: ignore
import time

MIGRATION = 1

def execute(conn: sqlite3.Connection) -> None:
    date_created = int(time.time())

    conn.execute("CREATE TABLE IF NOT EXISTS WalletData ("
        "key TEXT NOT NULL,"
        "value TEXT NOT NULL,"
        "date_created INTEGER NOT NULL,"
        "date_updated INTEGER NOT NULL"
    ")")
    conn.execute("CREATE UNIQUE INDEX IF NOT EXISTS idx_WalletData_unique ON WalletData(key)")

    conn.execute("INSERT INTO WalletData (key, value, date_created, date_updated) VALUES "
        "(?, ?, ?, ?)", ("migration", json.dumps(MIGRATION), date_created, date_created))
