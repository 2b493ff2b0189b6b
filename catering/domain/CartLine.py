"""CartLine domain entity: one package configuration held in a buyer's cart."""
from __future__ import annotations
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, List, Optional
from catering.domain.Dish import to_decimal, money_to_json
from catering.domain.Package import PackageRef
from catering.domain.errors import ValidationError
from catering.utilities.constants import ISO_TIMESTAMP_FORMAT, LOCAL_ID_PREFIX, CUSTOM_PACKAGE_PREFIX


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime(ISO_TIMESTAMP_FORMAT)


class AddOn:
    """Flat-priced extra; never scaled by guest count."""

    def __init__(self, dish_id: str, unit_price, quantity: int = 1, name: str = ""):
        if int(quantity) < 1:
            raise ValidationError(f"Add-on '{dish_id}' quantity must be >= 1")
        self.dish_id = dish_id
        self.name = name
        self.unit_price = to_decimal(unit_price)
        self.quantity = int(quantity)

    @property
    def total(self) -> Decimal:
        return self.unit_price * self.quantity

    def __eq__(self, other):
        if not isinstance(other, AddOn):
            return NotImplemented
        return (self.dish_id, self.unit_price, self.quantity) == (other.dish_id, other.unit_price, other.quantity)

    def __repr__(self) -> str:
        return f"AddOn({self.dish_id}: {self.unit_price} x{self.quantity})"

    @staticmethod
    def from_dict(data):
        d = dict(data)
        return AddOn(dish_id=str(d["dish_id"]), unit_price=d.get("unit_price", 0),
                     quantity=d.get("quantity", 1), name=d.get("name", ""))

    def to_dict(self):
        return {"dish_id": self.dish_id, "name": self.name,
                "unit_price": money_to_json(self.unit_price), "quantity": self.quantity}


class CartLine:
    def __init__(self, id: Optional[str], package: PackageRef, guests: int, price_at_time,
                 selected_dish_ids: Iterable[str] = (), add_ons: Optional[List[AddOn]] = None,
                 owner_id: Optional[str] = None, location: Optional[str] = None,
                 event_date: Optional[str] = None, event_type: Optional[str] = None,
                 created_at: Optional[str] = None, updated_at: Optional[str] = None):
        if guests is None or int(guests) < 1:
            raise ValidationError(f"Cart line guests must be >= 1, got {guests!r}")
        self.id = id
        self.package = package
        self.guests = int(guests)
        self.price_at_time = to_decimal(price_at_time)
        self.selected_dish_ids = tuple(dict.fromkeys(selected_dish_ids))
        self.add_ons = list(add_ons or [])
        self.owner_id = owner_id
        self.location = location
        self.event_date = event_date
        self.event_type = event_type
        now = utc_now()
        self.created_at = created_at or now
        self.updated_at = updated_at or self.created_at

    @property
    def package_id(self) -> str:
        return self.package.id

    @property
    def is_local(self) -> bool:
        return not self.id or self.id.startswith(LOCAL_ID_PREFIX)

    @property
    def has_custom_package(self) -> bool:
        return self.package.id.startswith(CUSTOM_PACKAGE_PREFIX)

    def copy(self, **changes) -> "CartLine":
        fields = {
            "id": self.id,
            "package": self.package,
            "guests": self.guests,
            "price_at_time": self.price_at_time,
            "selected_dish_ids": self.selected_dish_ids,
            "add_ons": list(self.add_ons),
            "owner_id": self.owner_id,
            "location": self.location,
            "event_date": self.event_date,
            "event_type": self.event_type,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
        fields.update(changes)
        return CartLine(**fields)

    def __str__(self) -> str:
        return (f"CartLine {self.id} - {self.package.name or self.package.id} - {self.guests} guests - "
                f"{self.price_at_time} {self.package.currency}")

    __repr__ = __str__

    @staticmethod
    def from_dict(data):
        d = dict(data)
        return CartLine(
            id=d.get("id"),
            package=PackageRef.from_dict(d["package"]),
            guests=d.get("guests"),
            price_at_time=d.get("price_at_time", 0),
            selected_dish_ids=[str(x) for x in d.get("selected_dish_ids", [])],
            add_ons=[AddOn.from_dict(a) for a in d.get("add_ons", [])],
            owner_id=d.get("owner_id"),
            location=d.get("location"),
            event_date=d.get("event_date"),
            event_type=d.get("event_type"),
            created_at=d.get("created_at"),
            updated_at=d.get("updated_at"),
        )

    def to_dict(self):
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "package_id": self.package.id,
            "package": self.package.to_dict(),
            "guests": self.guests,
            "selected_dish_ids": list(self.selected_dish_ids),
            "add_ons": [a.to_dict() for a in self.add_ons],
            "location": self.location,
            "event_date": self.event_date,
            "event_type": self.event_type,
            "price_at_time": money_to_json(self.price_at_time),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
