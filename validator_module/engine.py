"""
html-validator analysis module.
Subscribes to journey lifecycle events, caches one markup snapshot per rendering context,
validates every context of a page and publishes summary/detail rows.
"""

import asyncio
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from validator_module.checker import Checker
from validator_module.core import ModuleOptions, get_options, setup_logger
from validator_module.errors import (
    CheckerError,
    ModuleAnalysisError,
    StorageWriteError,
)
from validator_module.events import EventBus, HtmlValidatorEvent, JourneyEvent, ModuleEvent
from validator_module.models import (
    AnalysisReport,
    AnalysisStatus,
    CheckTarget,
    ContextOutcome,
    DetailRecord,
    PageTarget,
    Summary,
)
from validator_module.reducer import reduce
from validator_module.reporting import ResultLogger
from validator_module.snapshots import ContextSnapshotStore
from validator_module.storage import (
    DETAIL_COLUMNS,
    DETAIL_STORE,
    SUMMARY_COLUMNS,
    SUMMARY_STORE,
    StorageSink,
)

logger = setup_logger("html_validator.engine")


class HtmlValidatorModule:
    """
    Orchestrator for the html-validator audit.
    Invariants:
    - Storage, event bus and result logger are optional; absence is a no-op.
    - analyse_page reads a copy of the context list taken when it starts.
    - No failure crosses a context boundary.
    """

    name = "html-validator"
    id = "html_validator"

    def __init__(
        self,
        checker: Checker,
        event_bus: Optional[EventBus] = None,
        storage: Optional[StorageSink] = None,
        result_logger: Optional[ResultLogger] = None,
        options: Optional[Mapping[str, Any]] = None,
    ):
        self._checker = checker
        self.event_bus = event_bus
        self.storage = storage
        self.result_logger = result_logger
        self.options: ModuleOptions = get_options(options)
        self.snapshots = ContextSnapshotStore()
        self._pending_captures: Set["asyncio.Task[None]"] = set()

    async def init(self) -> None:
        """Install the summary/detail stores and announce the module."""
        if self.storage is not None:
            self.storage.install_store(SUMMARY_STORE, SUMMARY_COLUMNS)
            self.storage.install_store(DETAIL_STORE, DETAIL_COLUMNS)
        await self._emit(HtmlValidatorEvent.CREATE_MODULE, {"module": self})
        await self._emit(ModuleEvent.CREATE_MODULE, {"module": self})

    def init_events(self, journey: EventBus) -> None:
        journey.on(JourneyEvent.SESSION_START, self.on_session_start)
        journey.on(JourneyEvent.NEW_CONTEXT, self.on_new_context)

    # === LIFECYCLE HANDLERS ===

    async def on_session_start(self, data: Optional[Dict[str, Any]] = None) -> None:
        self.snapshots.reset()
        logger.info(f"[SESSION] New session, context cache cleared (generation {self.snapshots.generation})")

    async def on_new_context(self, data: Dict[str, Any]) -> None:
        """
        Capture the markup of a freshly announced context.
        Never raises: a failed capture leaves the context unavailable for analysis.
        """
        name = data["name"]
        task = asyncio.ensure_future(self.snapshots.capture(name, data["snapshot_provider"]))
        self._pending_captures.add(task)
        try:
            await task
            logger.info(f"[CAPTURE] Context '{name}' captured")
        except Exception as e:
            logger.error(f"[CAPTURE] Context '{name}' unavailable: {e}")
        finally:
            self._pending_captures.discard(task)

    # === ANALYSIS ===

    async def analyse_page(self, page: PageTarget) -> AnalysisReport:
        """
        FLOW: Emit startsComputing -> Wait for in-flight captures -> Snapshot contexts ->
        Analyse every context independently -> Emit endsComputing -> Return the aggregated report.
        """
        await self._emit(ModuleEvent.STARTS_COMPUTING, {"module": self})
        try:
            outcomes = await self._analyse_contexts(page)
        finally:
            await self._emit(ModuleEvent.ENDS_COMPUTING, {"module": self})

        report = AnalysisReport(url=page.url, outcomes=tuple(outcomes))
        if not report.success:
            logger.warning(f"[ANALYSE] {len(report.failures)}/{len(outcomes)} context(s) failed for {page.url}")
        return report

    async def _analyse_contexts(self, page: PageTarget) -> List[ContextOutcome]:
        if self._pending_captures:
            await asyncio.gather(*list(self._pending_captures), return_exceptions=True)

        contexts: List[Tuple[str, str]] = [(n, s) for n, s in self.snapshots.entries() if n]
        outcomes: List[ContextOutcome] = [
            ContextOutcome(
                context=name,
                status=AnalysisStatus.CAPTURE_FAILED,
                error=ModuleAnalysisError(name, error),
            )
            for name, error in self.snapshots.failures().items()
        ]

        if self.options.concurrent:
            outcomes.extend(await asyncio.gather(
                *(self._attempt_context(name, snapshot, page) for name, snapshot in contexts)
            ))
        else:
            for name, snapshot in contexts:
                outcomes.append(await self._attempt_context(name, snapshot, page))
        return outcomes

    async def _attempt_context(self, context_name: str, snapshot: str, page: PageTarget) -> ContextOutcome:
        """Runs one context; whatever it raises becomes that context's failed outcome."""
        try:
            return await self._analyse_context(context_name, snapshot, page)
        except Exception as e:
            return await self._fail(context_name, page, AnalysisStatus.ANALYSIS_FAILED, e)

    async def _analyse_context(self, context_name: str, snapshot: str, page: PageTarget) -> ContextOutcome:
        event_data: Dict[str, Any] = {"module": self, "url": page}
        await self._emit(HtmlValidatorEvent.BEFORE_ANALYSE, event_data)
        await self._emit(ModuleEvent.BEFORE_ANALYSE, event_data)

        try:
            findings = await self._checker.check(CheckTarget(url=page.url, content=snapshot))
        except CheckerError as e:
            return await self._fail(context_name, page, AnalysisStatus.CHECK_FAILED, e)
        except Exception as e:
            return await self._fail(context_name, page, AnalysisStatus.CHECK_FAILED,
                                    CheckerError(f"Unexpected checker failure: {e}"))

        event_data = dict(event_data, result={
            "url": page.url,
            "context": context_name,
            "raw_result": findings,
        })
        await self._emit(HtmlValidatorEvent.ON_RESULT, event_data)

        summary, details = reduce(findings, self.options.allowed_types, page.url, context_name)

        try:
            await self._store(summary, details, page)
        except StorageWriteError as e:
            return await self._fail(context_name, page, AnalysisStatus.STORAGE_FAILED, e)

        await self._emit(ModuleEvent.AFTER_ANALYSE, event_data)
        await self._emit(HtmlValidatorEvent.AFTER_ANALYSE, event_data)

        return ContextOutcome(
            context=context_name,
            status=AnalysisStatus.SUCCESS,
            summary=summary,
            details=tuple(details),
        )

    async def _store(self, summary: Summary, details: List[DetailRecord], page: PageTarget) -> None:
        """Details first, then the summary row. The first failing write aborts this context only."""
        for detail in details:
            await self._write(DETAIL_STORE, detail.as_row())
            await self._emit(HtmlValidatorEvent.ON_RESULT_DETAIL,
                             {"module": self, "url": page, "detail": detail})

        summary_row = summary.as_row()
        self._log_result("result", summary_row, page.url)
        await self._write(SUMMARY_STORE, summary_row)

    async def _write(self, store_name: str, row: Dict[str, Any]) -> None:
        """Sinks are synchronous; each write runs in a worker thread to keep the loop free."""
        if self.storage is None:
            return
        try:
            await asyncio.to_thread(self.storage.add, store_name, row)
        except Exception as e:
            raise StorageWriteError(store_name, e) from e

    async def _fail(self, context_name: str, page: PageTarget, status: AnalysisStatus,
                    cause: Exception) -> ContextOutcome:
        error = ModuleAnalysisError(context_name, cause)
        logger.error(f"[ANALYSE] {page.url} [{context_name}] {status.value}: {cause}")
        self._log_result("error", str(error), page.url)
        await self._emit(HtmlValidatorEvent.ON_ERROR, {
            "module": self,
            "url": page,
            "context": context_name,
            "error": error,
        })
        return ContextOutcome(
            context=context_name,
            status=status,
            error=error,
        )

    def _log_result(self, method: str, payload: Any, url: str) -> None:
        """Result logger failures are logged here and never fail the context."""
        if self.result_logger is None:
            return
        try:
            getattr(self.result_logger, method)(self.name, payload, url)
        except Exception as e:
            logger.error(f"[ANALYSE] Result logger failed for {url}: {e}")

    async def _emit(self, event, payload: Dict[str, Any]) -> None:
        if self.event_bus is None:
            return
        await self.event_bus.emit(event, payload)
