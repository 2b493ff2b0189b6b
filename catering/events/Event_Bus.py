"""Simple Event Bus / Observer implementation for cart and selection notifications.

Event names used so far:
  selection.rejected -> payload {"package_id": str, "dish_id": str, "category": str, "limit": int}
  catalog.limits_missing -> payload {"package_id": str, "message": str}
  cart.line_saved -> payload {"line": CartLine, "store": str}
  cart.line_removed -> payload {"line_id": str, "store": str}
  cart.migration_failed -> payload {"line": CartLine, "owner_id": str, "error": str}
  cart.stale_response_discarded -> payload {"line_id": str, "ticket": int, "latest": int}

Subscribers are callables taking (event_name, payload).
"""
from __future__ import annotations
import logging
from collections import defaultdict
from typing import Callable, Any, Dict, List

logger = logging.getLogger(__name__)

# --- Event name constants (used across modules) ---
SELECTION_REJECTED = "selection.rejected"
CATALOG_LIMITS_MISSING = "catalog.limits_missing"
CART_LINE_SAVED = "cart.line_saved"
CART_LINE_REMOVED = "cart.line_removed"
CART_MIGRATION_FAILED = "cart.migration_failed"
CART_STALE_RESPONSE_DISCARDED = "cart.stale_response_discarded"


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
			except Exception:
				# a broken listener must not undo a cart mutation that already happened
				logger.exception("[EventBus] Error delivering %s to %s", event_name, cb)


# A singleton-like instance (can be imported)
GLOBAL_EVENT_BUS = EventBus()


__all__ = [
	'EventBus', 'GLOBAL_EVENT_BUS',
	'SELECTION_REJECTED', 'CATALOG_LIMITS_MISSING', 'CART_LINE_SAVED', 'CART_LINE_REMOVED',
	'CART_MIGRATION_FAILED', 'CART_STALE_RESPONSE_DISCARDED'
]
