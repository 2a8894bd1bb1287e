"""Shared FastAPI dependencies: one Kitchen (and its event log) per process."""
from typing import Optional

from kitchen.bootstrap import Kitchen, build_kitchen
from kitchen.events.web_observers import EventLog

_kitchen: Optional[Kitchen] = None
_event_log = EventLog()


def get_kitchen() -> Kitchen:
    global _kitchen
    if _kitchen is None:
        _kitchen = build_kitchen()
        _event_log.start(_kitchen.event_bus)
    return _kitchen


def get_event_log() -> EventLog:
    return _event_log
