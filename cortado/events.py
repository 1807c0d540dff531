"""Event system for cortado.

The job state machine publishes its transitions through an EventEmitter;
presenters and other observers subscribe to it instead of being called
directly.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum, auto
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Job event types."""
    STATE_CHANGED = auto()
    PROGRESS_UPDATE = auto()


@dataclass
class Event:
    """Event data container.

    Attributes:
        type: Type of event
        timestamp: When the event occurred
        data: Event-specific data
        source: Component that generated the event
    """
    type: EventType
    timestamp: datetime
    data: Dict[str, Any]
    source: str


class EventEmitter:
    """Synchronous event dispatch in registration order."""

    def __init__(self) -> None:
        self._handlers: Dict[EventType, List[Callable[[Event], None]]] = {}
        self._error_handlers: List[Callable[[Exception], None]] = []

    def on(self, event_type: EventType, handler: Callable[[Event], None]) -> None:
        """Register an event handler.

        Args:
            event_type: Type of event to handle
            handler: Callback function for the event
        """
        handlers = self._handlers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)

    def off(self, event_type: EventType, handler: Callable[[Event], None]) -> None:
        """Remove an event handler."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)
        if not handlers:
            self._handlers.pop(event_type, None)

    def on_error(self, handler: Callable[[Exception], None]) -> None:
        """Register a handler for exceptions raised by event handlers."""
        self._error_handlers.append(handler)

    def emit(self, event_type: EventType, data: Dict[str, Any], source: str) -> None:
        """Emit an event to registered handlers.

        A failing handler is logged and reported to the error handlers; the
        remaining handlers still run.
        """
        event = Event(
            type=event_type,
            timestamp=datetime.now(),
            data=data,
            source=source
        )

        for handler in list(self._handlers.get(event_type, [])):
            try:
                handler(event)
            except Exception as e:
                logger.exception("Event handler failed for %s", event_type.name)
                for error_handler in self._error_handlers:
                    error_handler(e)
