"""EventBus — Observer for resize stage failures and completion.

Events emitted by the resizer:

* ``stage_failed`` — ``tool``, ``stage``, ``message``
* ``completed`` — ``tool``, ``path``, ``ok``
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

EventHandler = Callable[..., None]


class EventBus:
    """Publish/subscribe bus shared by the tool and its front ends.

    A handler that raises is logged and skipped; it never breaks the
    resize that emitted the event.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event: str, handler: EventHandler) -> None:
        """Register a handler for a given event type."""
        self._handlers[event].append(handler)

    def unsubscribe(self, event: str, handler: EventHandler) -> None:
        """Remove a previously registered handler."""
        try:
            self._handlers[event].remove(handler)
        except ValueError:
            logger.warning("Handler %r was not subscribed to event %r", handler, event)

    def emit(self, event: str, **kwargs: Any) -> None:
        """Fire an event, calling all subscribed handlers with ``kwargs``."""
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(**kwargs)
            except Exception:
                logger.exception("Error in handler %r for event %r", handler, event)
