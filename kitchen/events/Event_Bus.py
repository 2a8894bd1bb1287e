"""Simple Event Bus / Observer implementation for store change notifications.

Event names:
  categories.changed   -> payload {"action": str, "category_id": str}
  products.changed     -> payload {"action": str, "product_ids": [str, ...]}
  recipes.changed      -> payload {"action": str, "recipe_id": str}
  mealplan.changed     -> payload {"action": str, "week_key": str}
  storage.write_failed -> payload {"key": str, "error": str}
  sync.remote_applied  -> payload {"collection": str, "applied": [id, ...], "removed": [id, ...]}

Subscribers are callables taking (event_name, payload).
"""
from __future__ import annotations
import logging
from collections import defaultdict
from typing import Callable, Any, Dict, List

logger = logging.getLogger(__name__)

# --- Event name constants (used across modules) ---
CATEGORIES_CHANGED = "categories.changed"
PRODUCTS_CHANGED = "products.changed"
RECIPES_CHANGED = "recipes.changed"
MEALPLAN_CHANGED = "mealplan.changed"
STORAGE_WRITE_FAILED = "storage.write_failed"
SYNC_REMOTE_APPLIED = "sync.remote_applied"

ALL_EVENTS = (
	CATEGORIES_CHANGED, PRODUCTS_CHANGED, RECIPES_CHANGED,
	MEALPLAN_CHANGED, STORAGE_WRITE_FAILED, SYNC_REMOTE_APPLIED,
)


class EventBus:
	def __init__(self):
		self._subscribers: Dict[str, List[Callable[[str, Any], None]]] = defaultdict(list)

	def subscribe(self, event_name: str, callback: Callable[[str, Any], None]):
		if callback not in self._subscribers[event_name]:
			self._subscribers[event_name].append(callback)

	def unsubscribe(self, event_name: str, callback: Callable[[str, Any], None]):
		try:
			self._subscribers[event_name].remove(callback)
		except (ValueError, KeyError):
			pass

	def publish(self, event_name: str, payload: Any):
		for cb in list(self._subscribers.get(event_name, [])):
			try:
				cb(event_name, payload)
			except Exception as e:  # pragma: no cover
				logger.error("Error delivering %s to %s: %s", event_name, cb, e)


# A singleton-like instance (can be imported)
GLOBAL_EVENT_BUS = EventBus()

__all__ = [
	'EventBus', 'GLOBAL_EVENT_BUS', 'ALL_EVENTS',
	'CATEGORIES_CHANGED', 'PRODUCTS_CHANGED', 'RECIPES_CHANGED',
	'MEALPLAN_CHANGED', 'STORAGE_WRITE_FAILED', 'SYNC_REMOTE_APPLIED',
]
