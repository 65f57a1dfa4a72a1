"""Per-client observer registry.

Each ProviderClient owns one ClientEvents instance, so subscribers of one
client never see another client's events.
"""

from __future__ import annotations

import inspect
import logging
from collections import defaultdict
from collections.abc import Callable
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

EventHandler = Callable[[Any], Any]


class ClientEvent(str, Enum):
    MESSAGE_SENT = "message_sent"
    STREAMING_MESSAGE_SENT = "streaming_message_sent"
    ERROR = "error"
    HEALTH_CHECK = "health_check"


class ClientEvents:
    """Fan-out of client events to sync or async handlers.

    Handler failures are logged and never reach the emitting call.
    """

    def __init__(self) -> None:
        self._handlers: dict[ClientEvent, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event: ClientEvent | str, handler: EventHandler) -> None:
        self._handlers[ClientEvent(event)].append(handler)

    def unsubscribe(self, event: ClientEvent | str, handler: EventHandler) -> None:
        handlers = self._handlers.get(ClientEvent(event), [])
        if handler in handlers:
            handlers.remove(handler)

    def clear(self) -> None:
        self._handlers.clear()

    async def emit(self, event: ClientEvent, payload: Any) -> None:
        for handler in list(self._handlers.get(event, [])):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error("Event handler for %s failed: %s", event.value, e)
