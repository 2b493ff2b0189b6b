"""Cart reconciler: at most one line per (owner, package), held in exactly one store.

Anonymous carts live in the LocalCartRepository; authenticated carts in the
remote store. The login transition is migrate_local_cart_to_remote(), which
upserts every local line remotely and drops a local line only once the
remote store has confirmed it.
"""
from __future__ import annotations
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from catering.domain.Cart import Cart
from catering.domain.CartLine import AddOn, CartLine, utc_now
from catering.domain.Package import Package, PackageRef, CustomizationPolicy
from catering.domain.errors import PersistenceFailure, ValidationError
from catering.events.Event_Bus import EventBus, GLOBAL_EVENT_BUS
from catering.events.event_helpers import (
    publish_line_removed, publish_line_saved, publish_migration_failed, publish_stale_response,
)
from catering.infra.Cart_Repository import AuthState, CartRepository, LocalCartRepository, select_cart_repository
from catering.infra.Remote_Cart_Repository import RemoteCartClient, RemoteCartRepository
from catering.logic.cart.sequencer import MutationSequencer
from catering.logic.pricing.calculator import compute_total, validate_guests

logger = logging.getLogger(__name__)


class MigrationReport:
    """Outcome of a login migration: what moved, what stayed local for retry."""

    def __init__(self, owner_id: str):
        self.owner_id = owner_id
        self.migrated: List[CartLine] = []
        self.failed: List[Tuple[CartLine, str]] = []

    @property
    def complete(self) -> bool:
        return not self.failed

    def to_dict(self):
        return {
            "owner_id": self.owner_id,
            "migrated": [line.id for line in self.migrated],
            "failed": [{"line_id": line.id, "package_id": line.package_id, "error": err}
                       for line, err in self.failed],
        }

    def __repr__(self) -> str:
        return f"MigrationReport({self.owner_id}: {len(self.migrated)} migrated, {len(self.failed)} failed)"


class CartReconciler:
    def __init__(self, auth: AuthState, local: LocalCartRepository,
                 remote_client: Optional[RemoteCartClient] = None,
                 event_bus: Optional[EventBus] = None,
                 sequencer: Optional[MutationSequencer] = None):
        self.local = local
        self.remote_client = remote_client
        self._event_bus = event_bus or GLOBAL_EVENT_BUS
        self.sequencer = sequencer or MutationSequencer()
        self._use(auth)

    def _use(self, auth: AuthState, lines: Optional[List[CartLine]] = None) -> None:
        self.auth = auth
        self.repository: CartRepository = select_cart_repository(auth, self.local, self.remote_client)
        self.cart = Cart(auth.owner_id)
        self._loaded = False
        if lines is not None:
            self.cart.load(lines)
            self._loaded = True

    # --- Observer helpers -------------------------------------------------
    def set_event_bus(self, bus: EventBus):
        self._event_bus = bus
        return self

    # --- Reads ------------------------------------------------------------
    def refresh(self) -> Cart:
        """Reload the in-memory cart from the owning store."""
        self.cart.load(self.repository.list_lines())
        self._loaded = True
        return self.cart

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.refresh()

    def lines(self) -> List[CartLine]:
        self._ensure_loaded()
        return list(self.cart.lines)

    def find(self, line_id: str) -> Optional[CartLine]:
        self._ensure_loaded()
        return self.cart.find(line_id)

    def subtotal(self) -> Decimal:
        self._ensure_loaded()
        return self.cart.subtotal()

    # --- Writes -----------------------------------------------------------
    def add_to_cart(self, package: Union[Package, PackageRef], guests: int,
                    selected_dish_ids: Optional[Iterable[str]] = None,
                    add_ons: Sequence[AddOn] = (), *, location: Optional[str] = None,
                    event_date: Optional[str] = None, event_type: Optional[str] = None) -> CartLine:
        """Upsert the line for this package: an existing line is updated, never duplicated."""
        if isinstance(package, Package):
            guests = validate_guests(guests, package)
            ref = package.to_ref()
            if package.policy is CustomizationPolicy.FIXED or selected_dish_ids is None:
                selected = package.dish_ids
            else:
                selected = list(selected_dish_ids)
        else:
            guests = validate_guests(guests)
            ref = package
            selected = list(selected_dish_ids or ())
        add_ons = list(add_ons)
        price = compute_total(ref.price_per_person, guests, add_ons)

        self._ensure_loaded()
        existing = self.cart.find_by_package(ref.id)
        if existing is not None:
            line = existing.copy(
                package=ref, guests=guests, add_ons=add_ons, price_at_time=price,
                selected_dish_ids=selected,
                location=location if location is not None else existing.location,
                event_date=event_date if event_date is not None else existing.event_date,
                event_type=event_type if event_type is not None else existing.event_type,
                updated_at=utc_now(),
            )
        else:
            line = CartLine(None, ref, guests, price, selected_dish_ids=selected, add_ons=add_ons,
                            owner_id=self.auth.owner_id, location=location, event_date=event_date,
                            event_type=event_type)
        return self.persist(line)

    def persist(self, line: CartLine) -> CartLine:
        """Write one line through the owning store with rollback and stale-response discard.

        The in-memory cart is updated before the call; on PersistenceFailure the
        previous line is put back, unless a newer mutation of the same line has
        been issued meanwhile. A response that arrives after a newer mutation was
        issued is ignored.
        """
        self._ensure_loaded()
        key = line.package_id
        ticket = self.sequencer.issue(key)
        previous = self.cart.find_by_package(key)
        self.cart.upsert(line)
        try:
            stored = self.repository.put_line(line)
        except PersistenceFailure as e:
            if self.sequencer.is_current(key, ticket):
                if previous is not None:
                    self.cart.upsert(previous)
                else:
                    self.cart.discard_package(key)
            logger.error(f"Saving cart line for package {key} to {self.repository.name} store failed: {e}")
            raise
        if not self.sequencer.is_current(key, ticket):
            latest = self.sequencer.latest(key)
            logger.info(f"Discarding stale response for package {key} (ticket {ticket}, latest {latest})")
            publish_stale_response(stored.id, ticket, latest, bus=self._event_bus)
            return self.cart.find_by_package(key) or stored
        self.cart.upsert(stored)
        publish_line_saved(stored, self.repository.name, bus=self._event_bus)
        return stored

    def remove(self, line_id: str) -> None:
        """Delete a line from the owning store; unknown ids are a no-op."""
        self._ensure_loaded()
        line = self.cart.find(line_id)
        if line is not None:
            # a removal supersedes any in-flight write of the same line
            self.sequencer.issue(line.package_id)
            self.cart.discard(line_id)
        try:
            self.repository.remove_line(line_id)
        except PersistenceFailure:
            if line is not None:
                self.cart.upsert(line)
            raise
        if line is not None:
            publish_line_removed(line_id, self.repository.name, bus=self._event_bus)

    # --- Login transition -------------------------------------------------
    def migrate_local_cart_to_remote(self, owner_id: str) -> MigrationReport:
        """Move every local line into the owner's remote cart.

        Each local line is upserted by package (an existing remote line for the
        same package is replaced, not duplicated). Only lines the remote store
        confirmed are removed locally; failed lines stay for the next attempt,
        which makes the operation safe to repeat. Afterwards the reconciler
        routes all mutations to the remote store.
        """
        if not owner_id:
            raise ValidationError("Cart migration needs an authenticated owner id")
        if self.remote_client is None:
            raise ValidationError("Cart migration needs a remote cart client")
        remote = RemoteCartRepository(self.remote_client, owner_id)
        report = MigrationReport(owner_id)

        local_lines = self.local.list_lines()
        remote_by_package: Dict[str, CartLine] = {line.package_id: line for line in remote.list_lines()}
        custom_packages: Dict[str, PackageRef] = {}
        migrated_local_ids: List[str] = []

        for line in local_lines:
            try:
                target = line
                if line.has_custom_package:
                    target = line.copy(package=self._custom_package_ref(owner_id, line, custom_packages))
                existing = remote_by_package.get(target.package_id)
                target = target.copy(id=existing.id if existing is not None else None, owner_id=owner_id)
                stored = remote.put_line(target)
            except PersistenceFailure as e:
                logger.error(f"Migrating cart line {line.id} for {owner_id} failed: {e}")
                report.failed.append((line, str(e)))
                publish_migration_failed(line, owner_id, str(e), bus=self._event_bus)
                continue
            remote_by_package[stored.package_id] = stored
            report.migrated.append(stored)
            migrated_local_ids.append(line.id)

        for line_id in migrated_local_ids:
            self.local.remove_line(line_id)

        logger.info(f"Cart migration for {owner_id}: {len(report.migrated)} migrated, {len(report.failed)} kept locally")
        self._use(AuthState(owner_id), list(remote_by_package.values()))
        return report

    def _custom_package_ref(self, owner_id: str, line: CartLine, cache: Dict[str, PackageRef]) -> PackageRef:
        local_ref = line.package
        if local_ref.id not in cache:
            package_id = self.remote_client.create_custom_package(
                owner_id, list(line.selected_dish_ids), local_ref.people_count,
                local_ref.total_price, local_ref.name,
            )
            cache[local_ref.id] = PackageRef(package_id, local_ref.name, local_ref.people_count,
                                             local_ref.total_price, local_ref.currency, local_ref.caterer_id)
        # a retry must reuse the server package instead of creating another one
        self.local.put_line(line.copy(package=cache[local_ref.id]))
        return cache[local_ref.id]

    def logout(self) -> None:
        """Route further mutations to the local store again."""
        self._use(AuthState.anonymous())

    # --- Checkout ---------------------------------------------------------
    def checkout(self, order_gateway) -> Dict[str, Any]:
        """Turn every line of an authenticated cart into an order."""
        if not self.auth.is_authenticated:
            raise ValidationError("Sign in to check out")
        lines = self.lines()
        order = order_gateway.create_order(self.auth.owner_id, [line.id for line in lines])
        self.cart.load([])
        logger.info(f"Order {order.get('id')} created from {len(lines)} cart lines")
        return order


__all__ = ['CartReconciler', 'MigrationReport']
