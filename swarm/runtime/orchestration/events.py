"""
Event Bus - Synchronous named-event fan-out with per-listener isolation

WHAT: ``on``/``off``/``emit`` registry keyed by event name
WHERE: swarm/runtime/orchestration/events.py - notification plumbing
WHO: Orchestrator lifecycle, agent manager responses, external listeners
TIME: emit is O(listeners); listeners run inline on the caller's loop

Event names used by the runtime:
- session:start, session:end, session:replaced
- agent:activate, agent:deactivate, agent:response
- task:complete, task:error
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

Listener = Callable[[dict[str, Any]], Any]


class EventBus:
    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}

    def on(self, event_name: str, callback: Listener) -> "EventBus":
        self._listeners.setdefault(event_name, []).append(callback)
        return self

    def off(self, event_name: str, callback: Optional[Listener] = None) -> "EventBus":
        """Remove one listener, or every listener for ``event_name`` when none is given."""

        listeners = self._listeners.get(event_name)
        if listeners is None:
            return self
        if callback is None:
            del self._listeners[event_name]
            return self
        try:
            listeners.remove(callback)
        except ValueError:
            pass
        if not listeners:
            del self._listeners[event_name]
        return self

    def emit(self, event_name: str, data: Optional[dict[str, Any]] = None) -> int:
        """Invoke listeners in registration order; returns how many succeeded."""

        payload = data if data is not None else {}
        delivered = 0
        # Copy so listeners may unsubscribe themselves mid-dispatch.
        for listener in list(self._listeners.get(event_name, ())):
            try:
                listener(payload)
            except Exception as e:
                logger.error(f"Error in event listener for {event_name}: {e}", exc_info=True)
                continue
            delivered += 1
        return delivered

    def listeners(self, event_name: str) -> tuple[Listener, ...]:
        return tuple(self._listeners.get(event_name, ()))

    def clear(self) -> None:
        self._listeners.clear()


__all__ = ["EventBus", "Listener"]
