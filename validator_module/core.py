"""
FILE DESCRIPTION: Foundational module for module configuration and logging.
KEY FUNCTIONS/CLASSES: setup_logger, CompanyFormatter, ModuleOptions, get_options
"""

import logging
import sys
import os
from dataclasses import dataclass, fields, replace
from datetime import datetime
from pathlib import Path
from typing import Any, FrozenSet, Iterable, Mapping, Optional
from dotenv import load_dotenv

# === CONFIGURATION SECTION ===

load_dotenv(Path(__file__).resolve().parents[1] / '.env')


def _split_types(raw: str) -> FrozenSet[str]:
    return frozenset(t.strip() for t in raw.split(",") if t.strip())


# Finding types retained by the reducer
ALLOWED_TYPES = _split_types(os.getenv("HTMLV_ALLOWED_TYPES", "error,warning"))

# Nu HTML checker endpoint and request timeout (seconds)
VALIDATOR_URL = os.getenv("HTMLV_VALIDATOR_URL", "https://validator.w3.org/nu/")
VALIDATOR_TIMEOUT = int(os.getenv("HTMLV_VALIDATOR_TIMEOUT", 30))
USER_AGENT = "Mozilla/5.0 (compatible; HtmlValidatorModule/1.0)"

# Fan-out per-context analyses (0 = one context after another)
CONCURRENT_CONTEXTS = os.getenv("HTMLV_CONCURRENT_CONTEXTS", "1") != "0"

DATA_DIR = Path(__file__).resolve().parents[1] / 'data'
SQLITE_PATH = Path(os.getenv("HTMLV_SQLITE_PATH", str(DATA_DIR / "html_validator.db")))

# Playwright navigation timeout (seconds)
JS_GOTO_TIMEOUT = int(os.getenv("HTMLV_GOTO_TIMEOUT", 25))

LOG_FILE = os.getenv("HTMLV_LOG_FILE")


@dataclass(frozen=True)
class ModuleOptions:
    """
    Options recognised by the html-validator module.
    allowed_types is a membership set; order is irrelevant.
    """
    allowed_types: FrozenSet[str] = ALLOWED_TYPES
    concurrent: bool = CONCURRENT_CONTEXTS


def get_options(overrides: Optional[Mapping[str, Any]] = None) -> ModuleOptions:
    """
    FLOW: Starts from the defaults -> Rejects unknown keys -> Normalises allowed_types
    to a frozenset -> Returns a new immutable ModuleOptions.
    """
    options = ModuleOptions()
    if not overrides:
        return options

    known = {f.name for f in fields(ModuleOptions)}
    unknown = set(overrides) - known
    if unknown:
        raise ValueError(f"Unknown module options: {', '.join(sorted(unknown))}")

    values = dict(overrides)
    if "allowed_types" in values:
        allowed: Iterable[str] = values["allowed_types"]
        if isinstance(allowed, str):
            values["allowed_types"] = _split_types(allowed)
        else:
            values["allowed_types"] = frozenset(allowed)
    return replace(options, **values)


# === LOGGING SECTION ===

class CompanyFormatter(logging.Formatter):
    """
    FLOW: Receives a log record -> Extracts timestamp -> Formats according to company standard
    (e.g., [ Tue Jan 06 05:32:41 AM UTC 2026 ]) -> Prepends level and context -> Returns final string.
    """
    def format(self, record):
        dt = datetime.fromtimestamp(record.created)
        timestamp = dt.strftime("%a %b %d %I:%M:%S %p UTC %Y")
        context = getattr(record, 'context', 'root')
        return f"[ {timestamp} ] : {record.levelname} : {context} : {record.getMessage()}"


def setup_logger(name="html_validator", log_file=None, level=logging.INFO):
    """
    FLOW: Initializes/Retrieves logger -> Checks for existing handlers to prevent duplicates ->
    Sets propagation for child loggers -> Attaches Console and optional File handlers with CompanyFormatter.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    if name != "html_validator":
        logger.propagate = True
        setup_logger("html_validator", log_file=log_file, level=level)
        return logger

    formatter = CompanyFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


# Global logger instance
logger = setup_logger(log_file=LOG_FILE)
