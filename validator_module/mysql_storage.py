import os
import threading
from typing import Any, Dict, List, Mapping

from mysql.connector.pooling import MySQLConnectionPool

from validator_module.core import setup_logger
from validator_module.storage import INTEGER_COLUMNS, StorageSink, check_identifier

logger = setup_logger("html_validator.mysql")


def create_pool(pool_name: str = "html_validator_pool") -> MySQLConnectionPool:
    """Build a connection pool from the MYSQL_* environment variables."""
    return MySQLConnectionPool(
        pool_name=pool_name,
        pool_size=int(os.getenv("MYSQL_POOL_SIZE", 5)),
        host=os.getenv("MYSQL_HOST"),
        port=int(os.getenv("MYSQL_PORT", 3306)),
        user=os.getenv("MYSQL_USER"),
        password=os.getenv("MYSQL_PASSWORD"),
        database=os.getenv("MYSQL_DATABASE"),
    )


class MySQLStorage(StorageSink):
    """
    MySQL implementation of StorageSink.
    `connection_pool` is a pooled connection exposing cursor()/commit()/rollback().
    Writes may arrive from worker threads; a lock serialises use of the single connection.
    """

    def __init__(self, connection_pool):
        self._pool = connection_pool
        self._lock = threading.Lock()
        self._columns: Dict[str, List[str]] = {}

    @classmethod
    def from_env(cls) -> "MySQLStorage":
        return cls(create_pool().get_connection())

    def install_store(self, name: str, columns: Mapping[str, str]) -> None:
        table = check_identifier(name)
        cols = [check_identifier(c) for c in columns]
        col_defs = ",\n".join(
            f"`{c}` {'INT NULL' if c in INTEGER_COLUMNS else 'TEXT NULL'}" for c in cols
        )
        sql = f"""
            CREATE TABLE IF NOT EXISTS `{table}` (
                id BIGINT AUTO_INCREMENT PRIMARY KEY,
                {col_defs},
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        with self._lock, self._pool.cursor() as cursor:
            cursor.execute(sql)
            self._pool.commit()
        self._columns[name] = cols
        logger.info(f"[STORAGE] Store {table} installed ({len(cols)} columns)")

    def add(self, name: str, row: Mapping[str, Any]) -> None:
        if name not in self._columns:
            raise KeyError(f"Store '{name}' is not installed")
        cols = self._columns[name]
        sql = f"""
            INSERT INTO `{name}` ({', '.join(f'`{c}`' for c in cols)})
            VALUES ({', '.join('%s' for _ in cols)})
        """
        with self._lock:
            try:
                with self._pool.cursor() as cursor:
                    cursor.execute(sql, tuple(row.get(c) for c in cols))
                    self._pool.commit()
            except Exception:
                self._pool.rollback()
                raise
