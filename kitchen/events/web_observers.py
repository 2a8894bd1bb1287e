"""Web-facing observer for store change events.

Subscribes to every event published on a bus and keeps a bounded in-memory
buffer of recent events, so the API can serve them to polling clients.

  * Each event gets an auto-increment integer id (cursor); clients ask for
    `since=<last_id_seen>` and only receive newer events.
  * A Lock guards the buffer (uvicorn may run handlers in a thread pool).
  * MAX_EVENTS caps memory use.
"""
from __future__ import annotations
import logging
from typing import List, Dict, Any, Optional
from threading import Lock
from datetime import datetime, timezone

from .Event_Bus import ALL_EVENTS, EventBus

logger = logging.getLogger(__name__)

MAX_EVENTS = 300


class EventLog:
    def __init__(self, max_events: int = MAX_EVENTS):
        self._lock = Lock()
        self._events: List[Dict[str, Any]] = []
        self._next_id = 1
        self._max_events = max_events
        self._buses: List[EventBus] = []

    def record(self, event_name: str, payload: Any):  # signature expected by EventBus
        with self._lock:
            evt = {
                'id': self._next_id,
                'type': event_name,
                'ts': datetime.now(timezone.utc).isoformat(),
            }
            if isinstance(payload, dict):
                for k, v in payload.items():
                    if isinstance(v, (str, int, float, bool, list)) or v is None:
                        evt[k] = v
            self._events.append(evt)
            self._next_id += 1
            if len(self._events) > self._max_events:
                del self._events[: len(self._events) - self._max_events]

    def start(self, bus: EventBus):
        """Idempotent per bus: subscribe once."""
        if bus in self._buses:
            return self
        for name in ALL_EVENTS:
            bus.subscribe(name, self.record)
        self._buses.append(bus)
        logger.debug("Event log attached to bus %s", id(bus))
        return self

    def get_events(self, since: Optional[int] = None) -> Dict[str, Any]:
        """Return events newer than 'since' (exclusive), plus the cursor to poll with next."""
        with self._lock:
            if since is None:
                data = list(self._events)
            else:
                data = [e for e in self._events if e['id'] > since]
            next_cursor = self._events[-1]['id'] if self._events else since or 0
        return {'events': data, 'next_cursor': next_cursor}


__all__ = ['EventLog', 'MAX_EVENTS']
