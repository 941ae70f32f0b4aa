from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, DefaultDict, List


Handler = Callable[[dict[str, Any]], None]

BOOKING_CONFIRMED = "booking.confirmed"


class EventBus:
    """In-process fan-out. A failing handler is logged and never reaches the emitter."""

    def __init__(self) -> None:
        self._handlers: DefaultDict[str, List[Handler]] = defaultdict(list)
        self._logger = logging.getLogger(__name__)

    def emit(self, event_name: str, payload: dict[str, Any]) -> int:
        handlers = list(self._handlers.get(event_name, []))
        if not handlers:
            self._logger.debug("EventBus: no handlers for %s", event_name)
            return 0
        failures = 0
        for handler in handlers:
            try:
                handler(payload)
            except Exception:
                failures += 1
                self._logger.exception(
                    "EventBus handler %s failed for %s",
                    getattr(handler, "__name__", repr(handler)),
                    event_name,
                    extra={"booking_id": payload.get("booking_id")},
                )
        return failures

    def subscribe(self, event_name: str, handler: Handler) -> None:
        if handler not in self._handlers[event_name]:
            self._handlers[event_name].append(handler)

    def unsubscribe(self, event_name: str, handler: Handler) -> None:
        if handler in self._handlers.get(event_name, []):
            self._handlers[event_name].remove(handler)


event_bus = EventBus()
