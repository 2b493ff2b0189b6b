"""Event helper utilities.

This module provides helper functions for publishing selection and cart
events. Every helper publishes on the bus it is given, or on the global
event bus when none is passed.

Quick import:
    from catering.events.event_helpers import (
        publish_selection_rejected, publish_limits_missing,
        publish_line_saved, publish_line_removed,
        publish_migration_failed, publish_stale_response
    )

"""
from __future__ import annotations
from typing import Any, Optional
from .Event_Bus import (
    EventBus, GLOBAL_EVENT_BUS,
    SELECTION_REJECTED, CATALOG_LIMITS_MISSING, CART_LINE_SAVED, CART_LINE_REMOVED,
    CART_MIGRATION_FAILED, CART_STALE_RESPONSE_DISCARDED
)

__all__ = [
    'publish_selection_rejected', 'publish_limits_missing', 'publish_line_saved',
    'publish_line_removed', 'publish_migration_failed', 'publish_stale_response'
]


def _bus(bus: Optional[EventBus]) -> EventBus:
    return bus if bus is not None else GLOBAL_EVENT_BUS


def publish_selection_rejected(package_id: str, dish_id: str, category: str, limit: int,
                               bus: Optional[EventBus] = None):
    """Publish a selection.rejected event."""
    _bus(bus).publish(SELECTION_REJECTED, {
        'package_id': package_id,
        'dish_id': dish_id,
        'category': category,
        'limit': limit
    })


def publish_limits_missing(package_id: str, message: str, bus: Optional[EventBus] = None):
    """Publish a catalog.limits_missing event (FIXED_WITH_LIMITS without selections)."""
    _bus(bus).publish(CATALOG_LIMITS_MISSING, {
        'package_id': package_id,
        'message': message
    })


def publish_line_saved(line: Any, store: str, bus: Optional[EventBus] = None):
    _bus(bus).publish(CART_LINE_SAVED, {'line': line, 'store': store})


def publish_line_removed(line_id: str, store: str, bus: Optional[EventBus] = None):
    _bus(bus).publish(CART_LINE_REMOVED, {'line_id': line_id, 'store': store})


def publish_migration_failed(line: Any, owner_id: str, error: str, bus: Optional[EventBus] = None):
    """Publish a cart.migration_failed event; the line stays in the local store."""
    _bus(bus).publish(CART_MIGRATION_FAILED, {
        'line': line,
        'owner_id': owner_id,
        'error': error
    })


def publish_stale_response(line_id: str, ticket: int, latest: int, bus: Optional[EventBus] = None):
    _bus(bus).publish(CART_STALE_RESPONSE_DISCARDED, {
        'line_id': line_id,
        'ticket': ticket,
        'latest': latest
    })
