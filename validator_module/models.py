from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from validator_module.errors import ModuleAnalysisError, PageAnalysisError


class AnalysisStatus(Enum):
    SUCCESS = "SUCCESS"
    CAPTURE_FAILED = "CAPTURE_FAILED"
    CHECK_FAILED = "CHECK_FAILED"
    STORAGE_FAILED = "STORAGE_FAILED"
    ANALYSIS_FAILED = "ANALYSIS_FAILED"


@dataclass(frozen=True)
class PageTarget:
    """The page currently being analysed. Never persisted."""
    url: str


@dataclass(frozen=True)
class CheckTarget:
    """Checker request: addressable identifier plus the raw markup of one context."""
    url: str
    content: str


@dataclass(frozen=True)
class Finding:
    """
    One raw message produced by the checker.
    Fields other than type/message/extract are kept untouched in `extra`, which stays out of the hash.
    """
    type: str
    message: str = ""
    extract: str = ""
    extra: Mapping[str, Any] = field(default_factory=dict, hash=False)

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "Finding":
        known = ("type", "message", "extract")
        return cls(
            type=str(raw.get("type", "")),
            message=raw.get("message") or "",
            extract=raw.get("extract") or "",
            extra={k: v for k, v in raw.items() if k not in known},
        )


@dataclass(frozen=True)
class DetailRecord:
    """One persisted row per finding that passed the allow-filter."""
    url: str
    context: str
    type: str
    message: str
    extract: str

    def as_row(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "context": self.context,
            "type": self.type,
            "message": self.message,
            "extract": self.extract,
        }


@dataclass(frozen=True)
class Summary:
    """
    Per (url, context) aggregate.
    Types with no surviving finding are absent from counts, never zero.
    """
    url: str
    context: str
    counts: Tuple[Tuple[str, int], ...] = ()

    def count(self, finding_type: str) -> int:
        return dict(self.counts).get(finding_type, 0)

    def as_row(self) -> Dict[str, Any]:
        row: Dict[str, Any] = {"url": self.url, "context": self.context}
        row.update(self.counts)
        return row


@dataclass(frozen=True)
class ContextOutcome:
    context: str
    status: AnalysisStatus
    summary: Optional[Summary] = None
    details: Tuple[DetailRecord, ...] = ()
    error: Optional[ModuleAnalysisError] = None


@dataclass(frozen=True)
class AnalysisReport:
    """
    Aggregate outcome of one analyse_page call.
    Invariant: contains one outcome per context attempted, including failed captures.
    """
    url: str
    outcomes: Tuple[ContextOutcome, ...] = ()

    @property
    def success(self) -> bool:
        return all(o.status == AnalysisStatus.SUCCESS for o in self.outcomes)

    @property
    def failures(self) -> List[ModuleAnalysisError]:
        return [o.error for o in self.outcomes if o.error is not None]

    @property
    def summaries(self) -> List[Summary]:
        return [o.summary for o in self.outcomes if o.summary is not None]

    def outcome(self, context: str) -> Optional[ContextOutcome]:
        for o in self.outcomes:
            if o.context == context:
                return o
        return None

    def raise_for_failures(self) -> None:
        failures = self.failures
        if failures:
            raise PageAnalysisError(self.url, failures)

    def __bool__(self) -> bool:
        return self.success
