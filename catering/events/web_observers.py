"""Web-facing observers for cart and selection events.

This module subscribes to the GLOBAL_EVENT_BUS for every engine event and
stores a lightweight in-memory ring buffer of recent events that the web
layer (FastAPI endpoint) serves to polling clients, e.g. to show
"you can only pick 2 starters" or "package has no limits configured".

Design:
  * Each event stored with an auto-increment integer id (cursor) so clients
    can request only newer events (since=<last_id_seen>).
  * Thread-safety ensured with a simple Lock (uvicorn workers may share the
    process; multi-process deployments keep a per-process buffer).
  * A MAX_RECENT_EVENTS cap prevents unbounded memory growth.
"""
from __future__ import annotations
from typing import List, Dict, Any
from threading import Lock
from datetime import datetime, timezone

from catering.utilities.constants import MAX_RECENT_EVENTS
from .Event_Bus import (
    GLOBAL_EVENT_BUS, SELECTION_REJECTED, CATALOG_LIMITS_MISSING, CART_LINE_SAVED,
    CART_LINE_REMOVED, CART_MIGRATION_FAILED, CART_STALE_RESPONSE_DISCARDED
)

_lock = Lock()
_events: List[Dict[str, Any]] = []
_next_id = 1
_started = False

OBSERVED_EVENTS = (
    SELECTION_REJECTED, CATALOG_LIMITS_MISSING, CART_LINE_SAVED,
    CART_LINE_REMOVED, CART_MIGRATION_FAILED, CART_STALE_RESPONSE_DISCARDED,
)


def _record(event_name: str, payload: Any):  # signature expected by EventBus
    global _next_id
    with _lock:
        evt = {
            'id': _next_id,
            'type': event_name,
            'ts': datetime.now(timezone.utc).isoformat()
        }
        if isinstance(payload, dict):
            for k, v in payload.items():
                # CartLine objects are reduced to what the UI shows
                if hasattr(v, 'to_dict'):
                    evt['line_id'] = getattr(v, 'id', None)
                    evt['package_id'] = getattr(v, 'package_id', None)
                elif isinstance(v, (str, int, float, bool)) or v is None:
                    evt[k] = v
        _events.append(evt)
        _next_id += 1
        # Trim buffer
        if len(_events) > MAX_RECENT_EVENTS:
            del _events[: len(_events) - MAX_RECENT_EVENTS]


def start():
    """Idempotent start: subscribe observers once."""
    global _started
    if _started:
        return
    for name in OBSERVED_EVENTS:
        GLOBAL_EVENT_BUS.subscribe(name, _record)
    _started = True


def get_events(since: int | None = None) -> Dict[str, Any]:
    """Return events newer than 'since' (exclusive).

    If since is None, returns the last N (up to MAX_RECENT_EVENTS) events.
    Response includes next_cursor (largest id) so client can poll with since=next_cursor.
    """
    with _lock:
        if since is None:
            data = list(_events)
        else:
            data = [e for e in _events if e['id'] > since]
        next_cursor = _events[-1]['id'] if _events else since or 0
    return {'events': data, 'next_cursor': next_cursor}


__all__ = ['start', 'get_events', 'OBSERVED_EVENTS']
