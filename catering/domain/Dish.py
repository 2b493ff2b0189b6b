"""Dish and Category reference data (read-only to the engine)."""
from decimal import Decimal
from typing import Optional
from catering.utilities.constants import UNCATEGORIZED_NAME


def to_decimal(value) -> Decimal:
    """Coerce a JSON number/str into Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    if value is None or value == "":
        return Decimal("0")
    return Decimal(str(value))


def money_to_json(value: Decimal):
    '''Render a Decimal amount as int when integral, float otherwise.'''
    value = to_decimal(value)
    if value == value.to_integral_value():
        return int(value)
    return float(value)


class Category:
    def __init__(self, id: str = "", name: str = ""):
        self.id = id or ""
        self.name = name or UNCATEGORIZED_NAME

    @property
    def key(self) -> str:
        """Join key used when ids are missing: case-insensitive name."""
        return self.name.strip().lower()

    def matches(self, other: "Category") -> bool:
        if self.id and other.id:
            return self.id == other.id
        return self.key == other.key

    def __eq__(self, other):
        if not isinstance(other, Category):
            return NotImplemented
        return self.matches(other)

    def __hash__(self):
        # ids are not always present, so hashing must agree with the name fallback
        return hash(self.key)

    def __str__(self) -> str:
        return self.name

    __repr__ = __str__

    @staticmethod
    def from_dict(data):
        if isinstance(data, str):
            return Category(name=data)
        d = dict(data) if isinstance(data, dict) else {}
        return Category(id=str(d.get("id") or ""), name=d.get("name") or "")

    def to_dict(self):
        return {"id": self.id, "name": self.name}


class Dish:
    def __init__(self, id: str, name: str = "", category: Optional[Category] = None,
                 price=0, currency: str = "", is_addon: bool = False):
        self.id = id
        self.name = name
        self.category = category or Category()
        self.price = to_decimal(price)
        self.currency = currency
        self.is_addon = is_addon

    def __str__(self) -> str:
        return f"{self.name} ({self.category}) - {self.price} {self.currency}".strip()

    __repr__ = __str__

    @staticmethod
    def from_dict(data):
        d = dict(data)
        return Dish(
            id=str(d["id"]),
            name=d.get("name", ""),
            category=Category.from_dict(d.get("category") or {}),
            price=d.get("price", 0),
            currency=d.get("currency", ""),
            is_addon=bool(d.get("is_addon", False)),
        )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category.to_dict(),
            "price": money_to_json(self.price),
            "currency": self.currency,
            "is_addon": self.is_addon,
        }
