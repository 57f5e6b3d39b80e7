"""One-way event channel from the preview document to the editor session."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Type, TypeVar, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScrubTo:
    time: float


@dataclass(frozen=True)
class ElementDragEnd:
    """An element was dropped at ``x_percent``/``y_percent`` of its offset parent."""

    selector: str
    x_percent: float
    y_percent: float


PreviewEvent = Union[ScrubTo, ElementDragEnd]
E = TypeVar("E", ScrubTo, ElementDragEnd)

# Wire names used by the preview document's postMessage payloads.
EVENT_TYPES: Dict[str, Type[Any]] = {
    "SCRUB_TO": ScrubTo,
    "ELEMENT_DRAG_END": ElementDragEnd,
}


def event_from_message(message: Dict[str, Any]) -> PreviewEvent:
    """Build an event from a preview message such as ``{"type": "SCRUB_TO", "time": 1.2}``.

    Raises ValueError for unknown types or missing fields.
    """
    kind = str(message.get("type", "")).upper()
    if kind == "SCRUB_TO":
        try:
            return ScrubTo(time=float(message["time"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Invalid SCRUB_TO message: {message}") from exc
    if kind == "ELEMENT_DRAG_END":
        try:
            return ElementDragEnd(
                selector=str(message["selector"]),
                x_percent=float(message.get("x_percent", message.get("x"))),
                y_percent=float(message.get("y_percent", message.get("y"))),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Invalid ELEMENT_DRAG_END message: {message}") from exc
    raise ValueError(f"Unknown preview event type: {kind or '<missing>'}")


class EventChannel:
    """In-process replacement for the iframe ``postMessage`` boundary.

    Handlers run synchronously, in subscription order, on ``publish``.
    """

    def __init__(self) -> None:
        self._handlers: Dict[type, List[Callable[[Any], None]]] = {}

    def subscribe(self, event_type: Type[E], handler: Callable[[E], None]) -> Callable[[], None]:
        self._handlers.setdefault(event_type, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def publish(self, event: PreviewEvent) -> int:
        handlers = list(self._handlers.get(type(event), []))
        if not handlers:
            logger.debug("No handler for %s", type(event).__name__)
        for handler in handlers:
            handler(event)
        return len(handlers)

    def clear(self) -> None:
        self._handlers.clear()
