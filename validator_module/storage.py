import re
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any, Dict, List, Mapping

# Store name -> column key -> human readable label
SUMMARY_STORE = "html_validator"
DETAIL_STORE = "html_validator_details"

SUMMARY_COLUMNS: Dict[str, str] = {
    "url": "Url",
    "context": "Context",
    "error": "Errors",
    "warning": "Warnings",
    "info": "Infos",
}

DETAIL_COLUMNS: Dict[str, str] = {
    "url": "Url",
    "context": "Context",
    "type": "Type",
    "message": "Message",
    "extract": "Extract",
}

# Count columns are stored as integers, everything else as text
INTEGER_COLUMNS = {"error", "warning", "info"}

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def check_identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


class StorageSink(ABC):
    """
    Abstract write-only interface for named record tables.
    Rows are write-once: no update or delete is modeled.
    """

    @abstractmethod
    def install_store(self, name: str, columns: Mapping[str, str]) -> None:
        """Declare a table and its columns. Idempotent."""
        pass

    @abstractmethod
    def add(self, name: str, row: Mapping[str, Any]) -> None:
        """Persist one row. Raises KeyError for a store that was never installed."""
        pass


class MemoryStorage(StorageSink):
    """Keeps rows in process memory, per store, in insertion order."""

    def __init__(self):
        self._columns: Dict[str, Dict[str, str]] = OrderedDict()
        self._rows: Dict[str, List[Dict[str, Any]]] = {}

    def install_store(self, name: str, columns: Mapping[str, str]) -> None:
        self._columns[name] = dict(columns)
        self._rows.setdefault(name, [])

    def add(self, name: str, row: Mapping[str, Any]) -> None:
        if name not in self._columns:
            raise KeyError(f"Store '{name}' is not installed")
        allowed = self._columns[name]
        self._rows[name].append({k: v for k, v in row.items() if k in allowed})

    def columns(self, name: str) -> Dict[str, str]:
        return dict(self._columns[name])

    def rows(self, name: str) -> List[Dict[str, Any]]:
        return list(self._rows.get(name, []))
