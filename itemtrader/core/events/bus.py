from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Callable


LOG = logging.getLogger(__name__)

EventHandler = Callable[[Any], None]


@dataclass
class EventBus:
    _subs: dict[type, list[EventHandler]] = field(default_factory=dict)

    def subscribe(self, event_type: type, handler: EventHandler) -> Callable[[], None]:
        handlers = self._subs.setdefault(event_type, [])
        handlers.append(handler)

        def _unsubscribe() -> None:
            rows = self._subs.get(event_type, [])
            self._subs[event_type] = [row for row in rows if row is not handler]

        return _unsubscribe

    def publish(self, event: Any) -> None:
        event_type = type(event)
        handlers = list(self._subs.get(event_type, []))
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                # A committed trade is never undone by a failing listener.
                LOG.exception("Notification handler failed for %s", event_type.__name__)
