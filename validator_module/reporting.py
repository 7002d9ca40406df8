"""
Result logger collaborator: prints per-context summaries as small tables.
"""

import logging
from typing import Any, Mapping, Optional

from tabulate import tabulate

from validator_module.core import setup_logger


class ResultLogger:
    """
    FLOW: Receives a module summary row -> Renders it with tabulate ->
    Emits it through the html_validator logger tagged with the module name.
    """

    def __init__(self, logger: Optional[logging.Logger] = None, tablefmt: str = "simple"):
        self._logger = logger or setup_logger("html_validator.results")
        self._tablefmt = tablefmt

    def format_result(self, module_name: str, summary: Mapping[str, Any], url: str) -> str:
        counts = {k: v for k, v in summary.items() if k not in ("url", "context")}
        row = [summary.get("context", ""), url] + [counts[k] for k in sorted(counts)]
        headers = ["Context", "Url"] + sorted(counts)
        return f"[{module_name}]\n" + tabulate([row], headers=headers, tablefmt=self._tablefmt)

    def result(self, module_name: str, summary: Mapping[str, Any], url: str) -> None:
        self._logger.info(self.format_result(module_name, summary, url),
                          extra={"context": module_name})

    def error(self, module_name: str, message: str, url: str) -> None:
        self._logger.error(f"[{module_name}] {url} : {message}", extra={"context": module_name})
