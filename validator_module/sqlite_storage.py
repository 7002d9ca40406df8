"""
SQLite implementation of StorageSink.
One table per installed store; every column is nullable so summaries can omit absent types.
"""

import sqlite3
import threading
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

from validator_module.core import SQLITE_PATH
from validator_module.storage import INTEGER_COLUMNS, StorageSink, check_identifier


class SQLiteStorage(StorageSink):
    """
    Writes may arrive from worker threads; one lock serialises every use of the connection.
    """

    def __init__(self, db_path: Union[str, Path] = SQLITE_PATH):
        if str(db_path) != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self._lock = threading.Lock()
        self._columns: Dict[str, List[str]] = {}

    def install_store(self, name: str, columns: Mapping[str, str]) -> None:
        table = check_identifier(name)
        cols = [check_identifier(c) for c in columns]
        col_defs = ", ".join(
            f"{c} {'INTEGER' if c in INTEGER_COLUMNS else 'TEXT'}" for c in cols
        )
        with self._lock:
            self._conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {table} (
                    id INTEGER PRIMARY KEY,
                    {col_defs}
                )
            """)
            self._conn.commit()
        self._columns[name] = cols

    def add(self, name: str, row: Mapping[str, Any]) -> None:
        if name not in self._columns:
            raise KeyError(f"Store '{name}' is not installed")
        cols = self._columns[name]
        placeholders = ", ".join("?" for _ in cols)
        with self._lock:
            self._conn.execute(
                f"INSERT INTO {name} ({', '.join(cols)}) VALUES ({placeholders})",
                tuple(row.get(c) for c in cols),
            )
            self._conn.commit()

    def fetch_all(self, name: str) -> List[Dict[str, Any]]:
        """Read back every row of a store, in insertion order."""
        cols = self._columns[name]
        with self._lock:
            cursor = self._conn.execute(f"SELECT {', '.join(cols)} FROM {name} ORDER BY id")
            rows = cursor.fetchall()
        return [dict(zip(cols, r)) for r in rows]

    def close(self) -> None:
        self._conn.close()
