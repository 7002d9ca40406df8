"""
Lifecycle event names, their payload contracts and the publish/subscribe bus.
Handlers are plain callables registered against typed event names.
"""

import inspect
from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Union

from validator_module.core import setup_logger
from validator_module.errors import EventRegistrationError, EventPayloadError

logger = setup_logger("html_validator.events")


class JourneyEvent(Enum):
    """Events emitted by the journey driver and consumed by modules."""
    SESSION_START = "journey__session_start"
    NEW_CONTEXT = "journey__new_context"


class ModuleEvent(Enum):
    """Generic events every analysis module emits."""
    CREATE_MODULE = "module__createModule"
    STARTS_COMPUTING = "module__startsComputing"
    ENDS_COMPUTING = "module__endsComputing"
    BEFORE_ANALYSE = "module__beforeAnalyse"
    AFTER_ANALYSE = "module__afterAnalyse"


class HtmlValidatorEvent(Enum):
    """html-validator module events."""
    CREATE_MODULE = "html_validator_module__createHtmlValidatorModule"
    BEFORE_ANALYSE = "html_validator_module__beforeAnalyse"
    ON_RESULT = "html_validator_module__onResult"
    ON_RESULT_DETAIL = "html_validator_module__onResultDetail"
    AFTER_ANALYSE = "html_validator_module__afterAnalyse"
    ON_ERROR = "html_validator_module__onError"


EventName = Union[JourneyEvent, ModuleEvent, HtmlValidatorEvent]

# Required payload keys per event
EVENT_PAYLOADS: Dict[EventName, FrozenSet[str]] = {
    JourneyEvent.SESSION_START: frozenset(),
    JourneyEvent.NEW_CONTEXT: frozenset({"name", "snapshot_provider"}),
    ModuleEvent.CREATE_MODULE: frozenset({"module"}),
    ModuleEvent.STARTS_COMPUTING: frozenset({"module"}),
    ModuleEvent.ENDS_COMPUTING: frozenset({"module"}),
    ModuleEvent.BEFORE_ANALYSE: frozenset({"module", "url"}),
    ModuleEvent.AFTER_ANALYSE: frozenset({"module", "url"}),
    HtmlValidatorEvent.CREATE_MODULE: frozenset({"module"}),
    HtmlValidatorEvent.BEFORE_ANALYSE: frozenset({"module", "url"}),
    HtmlValidatorEvent.ON_RESULT: frozenset({"module", "url", "result"}),
    HtmlValidatorEvent.ON_RESULT_DETAIL: frozenset({"module", "url", "detail"}),
    HtmlValidatorEvent.AFTER_ANALYSE: frozenset({"module", "url"}),
    HtmlValidatorEvent.ON_ERROR: frozenset({"module", "url", "context", "error"}),
}

Handler = Callable[[Dict[str, Any]], Any]


class EventBus:
    """
    FLOW: Handlers are validated and stored per event at registration ->
    emit() validates the payload shape -> Each handler is called in registration order,
    coroutine results are awaited before the next handler runs.
    A failing listener is logged and does not stop delivery to the others.
    """

    def __init__(self):
        self._handlers: Dict[EventName, List[Handler]] = defaultdict(list)

    def on(self, event: EventName, handler: Handler) -> None:
        if event not in EVENT_PAYLOADS:
            raise EventRegistrationError(f"Unknown event: {event!r}")
        if not callable(handler):
            raise EventRegistrationError(f"Handler for {event.value} is not callable")
        self._handlers[event].append(handler)

    def off(self, event: EventName, handler: Handler) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def listeners(self, event: EventName) -> List[Handler]:
        return list(self._handlers.get(event, []))

    async def emit(self, event: EventName, payload: Mapping[str, Any] = None) -> None:
        payload = dict(payload or {})
        required = EVENT_PAYLOADS.get(event)
        if required is None:
            raise EventPayloadError(f"Unknown event: {event!r}")
        missing = required - payload.keys()
        if missing:
            raise EventPayloadError(
                f"Payload for {event.value} is missing: {', '.join(sorted(missing))}"
            )

        for handler in list(self._handlers.get(event, [])):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"[EVENTBUS] Listener {getattr(handler, '__qualname__', handler)} "
                             f"failed on {event.value}: {e}")
