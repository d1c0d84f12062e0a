"""Simple in-process event bus."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

SESSION_CHANGED = "session.changed"
ONBOARDING_COMPLETED = "onboarding.completed"
MEMBER_REGISTRATION_SKIPPED = "member.registration_skipped"


@dataclass(frozen=True)
class PortalEvent:
    event_type: str
    payload: Dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


EventHandler = Callable[[PortalEvent], None]


class EventBus:
    def __init__(self) -> None:
        self._subscribers: Dict[str, List[EventHandler]] = {}

    def subscribe(self, event_type: str, handler: EventHandler) -> Callable[[], None]:
        handlers = self._subscribers.setdefault(event_type, [])
        handlers.append(handler)

        def _unsubscribe() -> None:
            if handler in handlers:
                handlers.remove(handler)

        return _unsubscribe

    def publish(self, event_type: str, payload: Dict[str, Any] | None = None) -> PortalEvent:
        event = PortalEvent(event_type=event_type, payload=payload or {})
        for handler in list(self._subscribers.get(event_type, [])):
            handler(event)
        return event


# Global singleton
event_bus = EventBus()
