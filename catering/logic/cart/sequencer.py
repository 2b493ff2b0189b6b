"""Per-line mutation tickets: last write wins by issuance order.

Every cart mutation takes a ticket before its persistence call. When the
call returns, a ticket that is no longer the newest for that line marks the
response as stale and the caller discards it.
"""
from __future__ import annotations
from threading import Lock
from typing import Dict


class MutationSequencer:
    def __init__(self):
        self._lock = Lock()
        self._latest: Dict[str, int] = {}

    def issue(self, key: str) -> int:
        with self._lock:
            ticket = self._latest.get(key, 0) + 1
            self._latest[key] = ticket
            return ticket

    def is_current(self, key: str, ticket: int) -> bool:
        with self._lock:
            return self._latest.get(key, 0) == ticket

    def latest(self, key: str) -> int:
        with self._lock:
            return self._latest.get(key, 0)


__all__ = ['MutationSequencer']
