from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Tuple, Union


class EventType(str, Enum):
    """Events emitted by the stream parser; values are the subscription names."""

    DEPENDENCIES = "dependencies"
    CODE_BLOCK_START = "codeBlockStart"
    CODE_UPDATE = "codeUpdate"
    CODE = "code"
    TEXT = "text"


Handler = Callable[..., Any]


@dataclass(frozen=True)
class ParserEvent:
    type: EventType
    args: Tuple[Any, ...]


def _event_type(event: Union[str, EventType]) -> EventType:
    try:
        return EventType(event)
    except ValueError:
        raise ValueError(f"Unknown event: {event}") from None


class EventBus:
    """Synchronous publish/subscribe for parser events.

    Handlers run in registration order inside ``emit``. When ``record`` is set,
    emitted events are also queued until ``drain`` is called, for callers that
    prefer to inspect progress after each write instead of subscribing.
    """

    def __init__(self, record: bool = False) -> None:
        self.record = record
        self._handlers: Dict[EventType, List[Handler]] = {t: [] for t in EventType}
        self._queue: Deque[ParserEvent] = deque()

    def on(self, event: Union[str, EventType], handler: Handler) -> None:
        self._handlers[_event_type(event)].append(handler)

    def remove_all_listeners(self) -> None:
        for handlers in self._handlers.values():
            handlers.clear()

    def emit(self, event: EventType, *args: Any) -> None:
        if self.record:
            self._queue.append(ParserEvent(event, args))
        for handler in list(self._handlers[event]):
            handler(*args)

    def drain(self) -> List[ParserEvent]:
        events = list(self._queue)
        self._queue.clear()
        return events

    def clear_queue(self) -> None:
        self._queue.clear()
