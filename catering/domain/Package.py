"""Package catalog entity: priced bundle of dish items plus its customization policy."""
from __future__ import annotations
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple
from catering.domain.Dish import Category, Dish, to_decimal, money_to_json
from catering.domain.errors import ValidationError
from catering.utilities.constants import POLICY_ALIASES


class CustomizationPolicy(str, Enum):
    FIXED = "FIXED"
    CUSTOMIZABLE = "CUSTOMIZABLE"
    FIXED_WITH_LIMITS = "FIXED_WITH_LIMITS"

    @classmethod
    def normalize(cls, raw, has_category_selections: bool = False) -> "CustomizationPolicy":
        """Map a raw catalog flag onto the closed enum.

        The storefront flagged limit-carrying packages as "CUSTOMISABLE"; such a
        package is treated as FIXED_WITH_LIMITS when selections are attached.
        """
        if isinstance(raw, cls):
            return raw
        key = str(raw or "FIXED").strip().upper().replace(" ", "_")
        canonical = POLICY_ALIASES.get(key)
        if canonical is None:
            raise ValidationError(f"Unknown customization policy: {raw!r}")
        policy = cls(canonical)
        if policy is cls.CUSTOMIZABLE and has_category_selections:
            return cls.FIXED_WITH_LIMITS
        return policy


class CategorySelection:
    def __init__(self, category: Category, num_dishes_to_select: int):
        if num_dishes_to_select is None or int(num_dishes_to_select) < 1:
            raise ValidationError(
                f"num_dishes_to_select must be a positive integer for category '{category}'"
            )
        self.category = category
        self.num_dishes_to_select = int(num_dishes_to_select)

    def __repr__(self) -> str:
        return f"CategorySelection({self.category.name}: {self.num_dishes_to_select})"

    @staticmethod
    def from_dict(data):
        return CategorySelection(Category.from_dict(data.get("category") or {}),
                                 data.get("num_dishes_to_select"))

    def to_dict(self):
        return {"category": self.category.to_dict(), "num_dishes_to_select": self.num_dishes_to_select}


class PackageItem:
    def __init__(self, id: str, dish: Dish, quantity: int = 1, is_optional: bool = False,
                 is_addon: bool = False, price_at_time=None):
        if int(quantity) < 1:
            raise ValidationError(f"Package item '{id}' quantity must be >= 1")
        self.id = id
        self.dish = dish
        self.quantity = int(quantity)
        self.is_optional = is_optional
        self.is_addon = is_addon or dish.is_addon
        self.price_at_time = to_decimal(price_at_time) if price_at_time is not None else None

    @property
    def category(self) -> Category:
        return self.dish.category

    @property
    def unit_price(self) -> Decimal:
        return self.price_at_time if self.price_at_time is not None else self.dish.price

    def __repr__(self) -> str:
        return f"PackageItem({self.dish.name} x{self.quantity})"

    @staticmethod
    def from_dict(data):
        d = dict(data)
        return PackageItem(
            id=str(d.get("id") or d["dish"]["id"]),
            dish=Dish.from_dict(d["dish"]),
            quantity=d.get("quantity", 1) or 1,
            is_optional=bool(d.get("is_optional", False)),
            is_addon=bool(d.get("is_addon", False)),
            price_at_time=d.get("price_at_time"),
        )

    def to_dict(self):
        return {
            "id": self.id,
            "dish": self.dish.to_dict(),
            "quantity": self.quantity,
            "is_optional": self.is_optional,
            "is_addon": self.is_addon,
            "price_at_time": money_to_json(self.price_at_time) if self.price_at_time is not None else None,
        }


class PackageRef:
    """Pricing snapshot of a package, carried by cart lines."""

    def __init__(self, id: str, name: str = "", people_count: int = 1, total_price=0,
                 currency: str = "", caterer_id: Optional[str] = None):
        if int(people_count) < 1:
            raise ValidationError(f"Package '{id}' people_count must be >= 1")
        self.id = id
        self.name = name
        self.people_count = int(people_count)
        self.total_price = to_decimal(total_price)
        self.currency = currency
        self.caterer_id = caterer_id

    @property
    def price_per_person(self) -> Decimal:
        return self.total_price / Decimal(self.people_count)

    def __repr__(self) -> str:
        return f"PackageRef({self.id}, {self.total_price}/{self.people_count})"

    @staticmethod
    def from_dict(data):
        d = dict(data)
        return PackageRef(
            id=str(d["id"]),
            name=d.get("name", ""),
            people_count=d.get("people_count") or 1,
            total_price=d.get("total_price", 0),
            currency=d.get("currency", ""),
            caterer_id=d.get("caterer_id"),
        )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "people_count": self.people_count,
            "total_price": money_to_json(self.total_price),
            "price_per_person": money_to_json(self.price_per_person),
            "currency": self.currency,
            "caterer_id": self.caterer_id,
        }


class Package:
    def __init__(self, id: str, name: str = "", people_count: int = 1, total_price=0,
                 currency: str = "", policy=CustomizationPolicy.FIXED,
                 items: Optional[List[PackageItem]] = None,
                 category_selections: Optional[List[CategorySelection]] = None,
                 caterer_id: Optional[str] = None,
                 minimum_guests: Optional[int] = None, maximum_guests: Optional[int] = None):
        if people_count is None or int(people_count) < 1:
            raise ValidationError(f"Package '{id}' people_count must be >= 1, got {people_count!r}")
        self.id = id
        self.name = name
        self.people_count = int(people_count)
        self.total_price = to_decimal(total_price)
        self.currency = currency
        selections = tuple(category_selections or ())
        self.policy = CustomizationPolicy.normalize(policy, has_category_selections=bool(selections))
        self.items: Tuple[PackageItem, ...] = tuple(items or ())
        self.category_selections: Tuple[CategorySelection, ...] = selections
        self.caterer_id = caterer_id
        self.minimum_guests = minimum_guests
        self.maximum_guests = maximum_guests

    @property
    def price_per_person(self) -> Decimal:
        # Recomputed on every read so total_price/people_count edits never drift
        return self.total_price / Decimal(self.people_count)

    @property
    def dish_ids(self) -> List[str]:
        return [item.dish.id for item in self.items]

    def item_for_dish(self, dish_id: str) -> Optional[PackageItem]:
        for item in self.items:
            if item.dish.id == dish_id:
                return item
        return None

    def addon_items(self) -> List[PackageItem]:
        return [item for item in self.items if item.is_addon]

    def to_ref(self) -> PackageRef:
        return PackageRef(self.id, self.name, self.people_count, self.total_price,
                          self.currency, self.caterer_id)

    def __str__(self) -> str:
        return (f"{self.name or self.id} - {self.policy.value} - {self.people_count} people - "
                f"{self.total_price} {self.currency} - {len(self.items)} items")

    __repr__ = __str__

    @staticmethod
    def from_dict(data):
        d = dict(data)
        return Package(
            id=str(d["id"]),
            name=d.get("name", ""),
            people_count=d.get("people_count"),
            total_price=d.get("total_price", 0),
            currency=d.get("currency", ""),
            policy=d.get("policy") or "FIXED",
            items=[PackageItem.from_dict(i) for i in d.get("items", [])],
            category_selections=[CategorySelection.from_dict(s) for s in d.get("category_selections", [])],
            caterer_id=d.get("caterer_id"),
            minimum_guests=d.get("minimum_guests"),
            maximum_guests=d.get("maximum_guests"),
        )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "people_count": self.people_count,
            "total_price": money_to_json(self.total_price),
            "price_per_person": money_to_json(self.price_per_person),
            "currency": self.currency,
            "policy": self.policy.value,
            "items": [i.to_dict() for i in self.items],
            "category_selections": [s.to_dict() for s in self.category_selections],
            "caterer_id": self.caterer_id,
            "minimum_guests": self.minimum_guests,
            "maximum_guests": self.maximum_guests,
        }
