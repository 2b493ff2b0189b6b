"""Price calculator: guest-scaled package base plus flat-priced add-ons.

All functions are pure. Amounts are Decimal so the half-up rounding of the
base component is exact (33.335 * 3 = 100.005 -> 100, never 100.00499...).
"""
from __future__ import annotations
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, Iterable, Optional, Sequence, Tuple, Union
from catering.domain.CartLine import AddOn, CartLine
from catering.domain.Dish import to_decimal
from catering.domain.Package import Package, PackageRef
from catering.domain.errors import ValidationError

__all__ = [
    "round_half_up", "validate_guests", "compute_total", "quote", "quote_package",
    "cart_subtotal", "display_price_per_person",
]

AddOnLike = Union[AddOn, Tuple[object, int]]


def round_half_up(amount) -> Decimal:
    """Round to the nearest integer currency unit, halves away from zero."""
    return to_decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def validate_guests(guests, package: Optional[Package] = None) -> int:
    """Reject non-positive guest counts (and counts outside the package bounds when given)."""
    if isinstance(guests, bool) or not isinstance(guests, int):
        try:
            as_decimal = to_decimal(guests)
        except (InvalidOperation, ValueError, TypeError):
            raise ValidationError(f"Guests must be a positive integer, got {guests!r}")
        if not as_decimal.is_finite():
            raise ValidationError(f"Guests must be a finite number, got {guests!r}")
        if as_decimal != as_decimal.to_integral_value():
            raise ValidationError(f"Guests must be a whole number, got {guests!r}")
        guests = int(as_decimal)
    if guests <= 0:
        raise ValidationError(f"Guests must be at least 1, got {guests}")
    if package is not None:
        if package.minimum_guests and guests < package.minimum_guests:
            raise ValidationError(f"Package '{package.id}' requires at least {package.minimum_guests} guests")
        if package.maximum_guests and guests > package.maximum_guests:
            raise ValidationError(f"Package '{package.id}' allows at most {package.maximum_guests} guests")
    return guests


def _add_on_pair(add_on: AddOnLike) -> Tuple[Decimal, int]:
    if isinstance(add_on, AddOn):
        return add_on.unit_price, add_on.quantity
    unit_price, quantity = add_on
    return to_decimal(unit_price), int(quantity)


def add_on_total(add_ons: Iterable[AddOnLike]) -> Decimal:
    return sum((price * qty for price, qty in map(_add_on_pair, add_ons)), Decimal("0"))


def compute_total(price_per_person, guests: int, add_ons: Sequence[AddOnLike] = ()) -> Decimal:
    """Total = round(price_per_person * guests) + sum(unit_price * quantity).

    The base is rounded before add-ons are added; add-ons are never scaled by guests.
    """
    return quote(price_per_person, guests, add_ons)["total"]


def quote(price_per_person, guests: int, add_ons: Sequence[AddOnLike] = ()) -> Dict[str, Decimal]:
    """Same computation as compute_total, returning each component for display."""
    guests = validate_guests(guests)
    ppp = to_decimal(price_per_person)
    base = round_half_up(ppp * guests)
    extras = add_on_total(add_ons)
    return {
        "price_per_person": ppp,
        "base": base,
        "add_on_total": extras,
        "total": base + extras,
    }


def quote_package(package: Union[Package, PackageRef], guests: int,
                  add_ons: Sequence[AddOnLike] = ()) -> Dict[str, Decimal]:
    """Quote from a package; price_per_person is re-derived from total_price / people_count."""
    if isinstance(package, Package):
        validate_guests(guests, package)
    return quote(package.price_per_person, guests, add_ons)


def cart_subtotal(lines: Iterable[CartLine]) -> Decimal:
    """Sum of the frozen line prices."""
    return sum((line.price_at_time for line in lines), Decimal("0"))


def display_price_per_person(line: CartLine) -> Decimal:
    """Effective per-guest price of a cart line, add-ons included, rounded to cents."""
    return (line.price_at_time / Decimal(line.guests)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
