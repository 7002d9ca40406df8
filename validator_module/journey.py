"""
FILE DESCRIPTION: Minimal Playwright journey that drives analysis modules through one page.
KEY FUNCTIONS/CLASSES: PlaywrightJourney, page_snapshot_provider, DEFAULT_CONTEXTS
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from playwright.async_api import async_playwright

from validator_module.core import JS_GOTO_TIMEOUT, USER_AGENT, setup_logger
from validator_module.events import EventBus, JourneyEvent
from validator_module.models import AnalysisReport, PageTarget
from validator_module.snapshots import SnapshotProvider

logger = setup_logger("html_validator.journey")

# Context name -> browser.new_context() keyword arguments
DEFAULT_CONTEXTS: Dict[str, Dict[str, Any]] = {
    "desktop": {"viewport": {"width": 1366, "height": 768}},
    "mobile": {"viewport": {"width": 390, "height": 844}, "is_mobile": True, "has_touch": True},
}


def page_snapshot_provider(page) -> SnapshotProvider:
    """Returns a provider reading the serialized DOM of a Playwright page."""
    async def provider() -> str:
        return await page.content()
    return provider


def failed_navigation_provider(error: BaseException) -> SnapshotProvider:
    """Returns a provider that fails the capture: an unreachable page has no snapshot to audit."""
    async def provider() -> str:
        raise error
    return provider


class PlaywrightJourney:
    """
    FLOW: Emits session_start -> Opens one browser context per variant and navigates to the url ->
    Emits new_context with a snapshot provider -> Asks every module to analyse the page ->
    Closes the browser contexts.
    """

    def __init__(self, bus: EventBus, contexts: Optional[Mapping[str, Mapping[str, Any]]] = None,
                 goto_timeout: int = JS_GOTO_TIMEOUT):
        self.bus = bus
        self.contexts = dict(contexts or DEFAULT_CONTEXTS)
        self.goto_timeout = goto_timeout

    async def run(self, url: str, modules: Iterable[Any]) -> List[AnalysisReport]:
        async with async_playwright() as p:
            browser = await p.chromium.launch(
                headless=True,
                args=["--disable-gpu", "--no-sandbox", "--disable-dev-shm-usage"],
            )
            try:
                return await self.visit(browser, url, modules)
            finally:
                await browser.close()

    async def visit(self, browser, url: str, modules: Iterable[Any]) -> List[AnalysisReport]:
        """Run one session against an already launched browser."""
        await self.bus.emit(JourneyEvent.SESSION_START, {})

        opened = []
        try:
            for name, kwargs in self.contexts.items():
                context = await browser.new_context(**{"user_agent": USER_AGENT, **kwargs})
                opened.append(context)
                page = await context.new_page()
                provider = page_snapshot_provider(page)
                try:
                    await page.goto(url, wait_until="load", timeout=self.goto_timeout * 1000)
                except Exception as e:
                    logger.warning(f"[JOURNEY] Navigation to {url} failed in context '{name}': {e}")
                    provider = failed_navigation_provider(e)
                await self.bus.emit(JourneyEvent.NEW_CONTEXT, {
                    "name": name,
                    "snapshot_provider": provider,
                })

            target = PageTarget(url=url)
            return [await module.analyse_page(target) for module in modules]
        finally:
            for context in opened:
                await context.close()
