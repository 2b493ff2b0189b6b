"""Cart line mutator: guest-count and add-on edits with price recomputation."""
from __future__ import annotations
import logging
from typing import List, Optional, Sequence

from catering.domain.CartLine import AddOn, CartLine, utc_now
from catering.domain.errors import ValidationError
from catering.logic.cart.reconciler import CartReconciler
from catering.logic.pricing.calculator import compute_total, validate_guests

logger = logging.getLogger(__name__)


class CartLineMutator:
    def __init__(self, reconciler: CartReconciler):
        self.reconciler = reconciler

    def _line(self, line_id: str) -> CartLine:
        line = self.reconciler.find(line_id)
        if line is None:
            raise ValidationError(f"Cart line '{line_id}' does not exist")
        return line

    def update_line(self, line_id: str, guests: Optional[int] = None,
                    add_ons: Optional[Sequence[AddOn]] = None) -> CartLine:
        """Apply new guests and/or add-ons; guests, add-ons and price are written in one call."""
        line = self._line(line_id)
        new_guests = validate_guests(guests) if guests is not None else line.guests
        new_add_ons: List[AddOn] = list(add_ons) if add_ons is not None else list(line.add_ons)
        price = compute_total(line.package.price_per_person, new_guests, new_add_ons)
        updated = line.copy(guests=new_guests, add_ons=new_add_ons, price_at_time=price, updated_at=utc_now())
        logger.debug(f"Cart line {line_id}: {line.guests} -> {new_guests} guests, price {line.price_at_time} -> {price}")
        return self.reconciler.persist(updated)

    def update_guests(self, line_id: str, guests: int) -> CartLine:
        return self.update_line(line_id, guests=guests)

    def set_add_on(self, line_id: str, add_on: AddOn) -> CartLine:
        """Add an add-on, or replace the quantity/price of the one with the same dish."""
        line = self._line(line_id)
        add_ons = [a for a in line.add_ons if a.dish_id != add_on.dish_id]
        add_ons.append(add_on)
        return self.update_line(line_id, add_ons=add_ons)

    def remove_add_on(self, line_id: str, dish_id: str) -> CartLine:
        line = self._line(line_id)
        return self.update_line(line_id, add_ons=[a for a in line.add_ons if a.dish_id != dish_id])


__all__ = ['CartLineMutator']
