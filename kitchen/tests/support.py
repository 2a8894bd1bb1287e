"""Shared builders for the test modules: isolated storage, bus and clock per test."""
from datetime import datetime

from kitchen.bootstrap import Kitchen
from kitchen.events.Event_Bus import EventBus
from kitchen.infra.Local_Storage import InMemoryStorage

# a Wednesday, mid-morning
WEDNESDAY_MORNING = datetime(2025, 1, 15, 9, 30)


def make_kitchen(storage=None, now=WEDNESDAY_MORNING, remote=None, startup=True):
    bus = EventBus()
    kitchen = Kitchen(storage or InMemoryStorage(), bus, clock=lambda: now, remote=remote)
    if startup:
        kitchen.startup()
    return kitchen


class EventRecorder:
    def __init__(self, bus, *names):
        self.events = []
        for name in names:
            bus.subscribe(name, self)

    def __call__(self, name, payload):
        self.events.append((name, payload))

    def names(self):
        return [name for name, _ in self.events]
