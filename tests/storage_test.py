"""
Verification Scenarios for the storage sinks
"""

import threading
import unittest
from unittest.mock import MagicMock

from validator_module.mysql_storage import MySQLStorage
from validator_module.sqlite_storage import SQLiteStorage
from validator_module.storage import (
    DETAIL_COLUMNS,
    DETAIL_STORE,
    SUMMARY_COLUMNS,
    SUMMARY_STORE,
    MemoryStorage,
    check_identifier,
)


class TestMemoryStorage(unittest.TestCase):

    def test_rows_are_kept_per_store(self):
        storage = MemoryStorage()
        storage.install_store(SUMMARY_STORE, SUMMARY_COLUMNS)
        storage.add(SUMMARY_STORE, {"url": "u", "context": "desktop", "error": 2, "bogus": 1})

        self.assertEqual(storage.rows(SUMMARY_STORE), [{"url": "u", "context": "desktop", "error": 2}])

    def test_unknown_store(self):
        with self.assertRaises(KeyError):
            MemoryStorage().add("nope", {"url": "u"})


class TestSQLiteStorage(unittest.TestCase):

    def setUp(self):
        self.storage = SQLiteStorage(":memory:")
        self.storage.install_store(SUMMARY_STORE, SUMMARY_COLUMNS)
        self.storage.install_store(DETAIL_STORE, DETAIL_COLUMNS)

    def tearDown(self):
        self.storage.close()

    def test_absent_counts_are_null(self):
        self.storage.add(SUMMARY_STORE, {"url": "u", "context": "mobile", "warning": 3})

        self.assertEqual(self.storage.fetch_all(SUMMARY_STORE), [
            {"url": "u", "context": "mobile", "error": None, "warning": 3, "info": None},
        ])

    def test_detail_rows_in_insertion_order(self):
        for i in range(3):
            self.storage.add(DETAIL_STORE, {"url": "u", "context": "c", "type": "error",
                                            "message": f"m{i}", "extract": "<x>"})

        self.assertEqual([r["message"] for r in self.storage.fetch_all(DETAIL_STORE)], ["m0", "m1", "m2"])

    def test_install_is_idempotent(self):
        self.storage.install_store(SUMMARY_STORE, SUMMARY_COLUMNS)
        self.storage.add(SUMMARY_STORE, {"url": "u", "context": "c"})

        self.assertEqual(len(self.storage.fetch_all(SUMMARY_STORE)), 1)

    def test_uninstalled_store(self):
        with self.assertRaises(KeyError):
            self.storage.add("other", {"url": "u"})

    def test_identifiers_are_checked(self):
        with self.assertRaises(ValueError):
            check_identifier("summary; DROP TABLE x")

    def test_writes_from_worker_threads(self):
        """Scenario: rows arrive from several worker threads while the connection was opened here."""
        def write(i):
            self.storage.add(DETAIL_STORE, {"url": "u", "context": f"c{i}", "type": "error",
                                            "message": "m", "extract": "<x>"})

        workers = [threading.Thread(target=write, args=(i,)) for i in range(4)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        self.assertEqual(sorted(r["context"] for r in self.storage.fetch_all(DETAIL_STORE)),
                         ["c0", "c1", "c2", "c3"])


class TestMySQLStorage(unittest.TestCase):

    def setUp(self):
        self.mock_pool = MagicMock()
        self.cursor = self.mock_pool.cursor.return_value.__enter__.return_value
        self.storage = MySQLStorage(self.mock_pool)
        self.storage.install_store(DETAIL_STORE, DETAIL_COLUMNS)

    def test_install_creates_table(self):
        sql = self.cursor.execute.call_args[0][0]

        self.assertIn("CREATE TABLE IF NOT EXISTS `html_validator_details`", sql)
        self.mock_pool.commit.assert_called_once()

    def test_add_inserts_parameterised_row(self):
        self.storage.add(DETAIL_STORE, {"url": "u", "context": "c", "type": "error",
                                        "message": "m", "extract": "e"})

        sql, params = self.cursor.execute.call_args[0]
        self.assertIn("INSERT INTO `html_validator_details`", sql)
        self.assertEqual(params, ("u", "c", "error", "m", "e"))
        self.assertEqual(self.mock_pool.commit.call_count, 2)

    def test_failed_insert_rolls_back(self):
        self.cursor.execute.side_effect = RuntimeError("lost connection")

        with self.assertRaises(RuntimeError):
            self.storage.add(DETAIL_STORE, {"url": "u"})

        self.mock_pool.rollback.assert_called_once()


if __name__ == "__main__":
    unittest.main()
