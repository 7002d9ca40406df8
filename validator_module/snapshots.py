from collections import OrderedDict
from typing import Awaitable, Callable, Dict, Iterator, Optional, Tuple

from validator_module.core import setup_logger
from validator_module.errors import SnapshotCaptureError

logger = setup_logger("html_validator.snapshots")

SnapshotProvider = Callable[[], Awaitable[str]]


class ContextSnapshotStore:
    """
    Ordered cache of context name -> captured markup, rebuilt once per browsing session.
    Invariants:
    - Empty at the start of every session.
    - One entry per context name; the latest capture wins.
    - A capture started in an earlier session never lands in the current one.
    """

    def __init__(self):
        self._snapshots: "OrderedDict[str, str]" = OrderedDict()
        self._failures: Dict[str, SnapshotCaptureError] = {}
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def reset(self) -> None:
        self._snapshots.clear()
        self._failures.clear()
        self._generation += 1

    async def capture(self, context_name: str, provider: SnapshotProvider) -> None:
        """
        FLOW: Remember the session generation -> Await the provider ->
        Drop the result if a reset happened meanwhile -> Store it at the end of the capture order.
        A failing provider leaves the context unavailable and raises SnapshotCaptureError.
        """
        generation = self._generation
        try:
            content = await provider()
        except Exception as e:
            error = SnapshotCaptureError(context_name, e)
            if generation == self._generation:
                self._snapshots.pop(context_name, None)
                self._failures[context_name] = error
            raise error from e

        if generation != self._generation:
            logger.warning(f"[CAPTURE] Discarding stale snapshot for '{context_name}' from a previous session")
            return

        if not isinstance(content, str):
            content = "" if content is None else str(content)

        self._snapshots.pop(context_name, None)
        self._snapshots[context_name] = content
        self._failures.pop(context_name, None)

    def entries(self) -> Iterator[Tuple[str, str]]:
        """Lazily yields (context_name, snapshot) in capture order."""
        for name, snapshot in list(self._snapshots.items()):
            yield name, snapshot

    def failures(self) -> Dict[str, SnapshotCaptureError]:
        return dict(self._failures)

    def get(self, context_name: str) -> Optional[str]:
        return self._snapshots.get(context_name)

    def __contains__(self, context_name: str) -> bool:
        return context_name in self._snapshots

    def __len__(self) -> int:
        return len(self._snapshots)
