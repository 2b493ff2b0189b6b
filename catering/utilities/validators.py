"""
Boundary schemas using Pydantic: every catalog/cart payload is normalized here once,
so the engine only ever sees Package / CartLine objects.
"""
from decimal import Decimal
from typing import Any, List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator, ValidationError as PydanticValidationError

from catering.domain.CartLine import AddOn, CartLine
from catering.domain.Dish import Category, Dish
from catering.domain.Package import CategorySelection, CustomizationPolicy, Package, PackageItem, PackageRef
from catering.domain.errors import ValidationError
from catering.utilities.constants import POLICY_ALIASES


def unwrap_envelope(body: Any) -> Any:
    """Return the payload of an API response: a bare value, {"data": value} or {"data": {"data": value}}."""
    if isinstance(body, dict):
        if body.get("success") is False:
            raise ValidationError(str(body.get("message") or body.get("error") or "Request was not successful"))
        if "data" in body:
            inner = body["data"]
            if isinstance(inner, dict) and "data" in inner and set(inner) <= {"data", "count", "success"}:
                return inner["data"]
            return inner
    return body


def unwrap_list(body: Any) -> List[Any]:
    data = unwrap_envelope(body)
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValidationError(f"Expected a list payload, got {type(data).__name__}")
    return data


class CategoryPayload(BaseModel):
    id: str = ""
    name: str = ""

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v):
        return "" if v is None else str(v)

    @field_validator('name', mode='before')
    @classmethod
    def strip_name(cls, v):
        """Remove leading/trailing whitespace."""
        return (v or "").strip() if isinstance(v, str) or v is None else v

    def to_domain(self) -> Category:
        return Category(id=self.id, name=self.name)


def _category(value) -> CategoryPayload:
    if isinstance(value, CategoryPayload):
        return value
    if isinstance(value, str):
        return CategoryPayload(name=value)
    return CategoryPayload.model_validate(value or {})


class DishPayload(BaseModel):
    id: str
    name: str = ""
    category: CategoryPayload = Field(default_factory=CategoryPayload)
    price: Decimal = Decimal("0")
    currency: str = ""
    is_addon: bool = False

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v):
        return str(v)

    @field_validator('category', mode='before')
    @classmethod
    def coerce_category(cls, v):
        return _category(v)

    @field_validator('price', mode='before')
    @classmethod
    def default_price(cls, v):
        return 0 if v is None else v

    def to_domain(self) -> Dish:
        return Dish(self.id, self.name, self.category.to_domain(), self.price, self.currency, self.is_addon)


class PackageItemPayload(BaseModel):
    id: Optional[str] = None
    dish: DishPayload
    quantity: int = Field(1, ge=1)
    is_optional: bool = False
    is_addon: bool = False
    price_at_time: Optional[Decimal] = None

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v):
        return None if v is None else str(v)

    @field_validator('quantity', mode='before')
    @classmethod
    def default_quantity(cls, v):
        return 1 if v in (None, 0, "") else v

    def to_domain(self) -> PackageItem:
        return PackageItem(self.id or self.dish.id, self.dish.to_domain(), self.quantity,
                           self.is_optional, self.is_addon, self.price_at_time)


class CategorySelectionPayload(BaseModel):
    category: CategoryPayload
    num_dishes_to_select: int = Field(..., ge=1)

    @field_validator('category', mode='before')
    @classmethod
    def coerce_category(cls, v):
        return _category(v)

    def to_domain(self) -> CategorySelection:
        return CategorySelection(self.category.to_domain(), self.num_dishes_to_select)


class PackagePayload(BaseModel):
    """Catalog package as served by the storefront API (legacy field names accepted)."""
    id: str
    name: str = ""
    people_count: int = Field(..., ge=1)
    total_price: Decimal = Decimal("0")
    currency: str = ""
    policy: str = "FIXED"
    items: List[PackageItemPayload] = Field(default_factory=list)
    category_selections: List[CategorySelectionPayload] = Field(default_factory=list)
    caterer_id: Optional[str] = None
    minimum_guests: Optional[int] = Field(None, ge=1)
    maximum_guests: Optional[int] = Field(None, ge=1)

    @model_validator(mode='before')
    @classmethod
    def normalize_legacy_fields(cls, data):
        if not isinstance(data, dict):
            return data
        d = dict(data)
        if d.get("id") is not None:
            d["id"] = str(d["id"])
        # people_count is the legacy name of minimum_people
        if not d.get("people_count"):
            d["people_count"] = d.get("minimum_people")
        if not d.get("policy"):
            d["policy"] = d.get("customisation_type") or d.get("customization_type") or "FIXED"
        if not d.get("caterer_id") and isinstance(d.get("caterer"), dict):
            d["caterer_id"] = d["caterer"].get("id")
        if d.get("caterer_id") is not None:
            d["caterer_id"] = str(d["caterer_id"])
        # price_per_person is always derived, never trusted from the payload
        d.pop("price_per_person", None)
        d["category_selections"] = [s for s in (d.get("category_selections") or [])
                                    if s and s.get("num_dishes_to_select")]
        d["items"] = [i for i in (d.get("items") or []) if i and i.get("dish")]
        return d

    @field_validator('policy')
    @classmethod
    def validate_policy(cls, v):
        key = str(v).strip().upper().replace(" ", "_")
        if key not in POLICY_ALIASES:
            raise ValueError(f"Unknown customization policy: {v}")
        return POLICY_ALIASES[key]

    @field_validator('total_price')
    @classmethod
    def validate_total(cls, v):
        if v < 0:
            raise ValueError('total_price cannot be negative')
        return v

    def to_domain(self) -> Package:
        policy = CustomizationPolicy.normalize(self.policy, bool(self.category_selections))
        return Package(
            id=self.id,
            name=self.name,
            people_count=self.people_count,
            total_price=self.total_price,
            currency=self.currency,
            policy=policy,
            items=[i.to_domain() for i in self.items],
            category_selections=[s.to_domain() for s in self.category_selections],
            caterer_id=self.caterer_id,
            minimum_guests=self.minimum_guests,
            maximum_guests=self.maximum_guests,
        )


class PackageRefPayload(BaseModel):
    id: str
    name: str = ""
    people_count: int = Field(1, ge=1)
    total_price: Decimal = Decimal("0")
    currency: str = ""
    caterer_id: Optional[str] = None

    @model_validator(mode='before')
    @classmethod
    def normalize_legacy_fields(cls, data):
        if not isinstance(data, dict):
            return data
        d = dict(data)
        d["id"] = str(d.get("id", ""))
        d["people_count"] = d.get("people_count") or d.get("minimum_people") or 1
        if not d.get("caterer_id") and isinstance(d.get("caterer"), dict):
            d["caterer_id"] = d["caterer"].get("id")
        if d.get("caterer_id") is not None:
            d["caterer_id"] = str(d["caterer_id"])
        return d

    def to_domain(self) -> PackageRef:
        return PackageRef(self.id, self.name, self.people_count, self.total_price, self.currency, self.caterer_id)


class AddOnPayload(BaseModel):
    dish_id: str
    name: str = ""
    unit_price: Decimal = Field(..., ge=0)
    quantity: int = Field(1, ge=1)

    @model_validator(mode='before')
    @classmethod
    def normalize_nested_add_on(cls, data):
        # storefront shape: {"add_on": {"id", "name", "price"}, "quantity": n}
        if isinstance(data, dict) and isinstance(data.get("add_on"), dict):
            inner = data["add_on"]
            return {
                "dish_id": str(inner.get("id", "")),
                "name": inner.get("name", ""),
                "unit_price": inner.get("price", 0),
                "quantity": data.get("quantity", 1),
            }
        return data

    @field_validator('dish_id', mode='before')
    @classmethod
    def coerce_dish_id(cls, v):
        return str(v)

    def to_domain(self) -> AddOn:
        return AddOn(self.dish_id, self.unit_price, self.quantity, self.name)


class CartLinePayload(BaseModel):
    """Cart line as stored locally or echoed by the remote cart API."""
    id: Optional[str] = None
    owner_id: Optional[str] = None
    package_id: Optional[str] = None
    package: Optional[PackageRefPayload] = None
    guests: Optional[int] = None
    price_at_time: Optional[Decimal] = None
    selected_dish_ids: List[str] = Field(default_factory=list)
    add_ons: List[AddOnPayload] = Field(default_factory=list)
    location: Optional[str] = None
    event_date: Optional[str] = None
    event_type: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @model_validator(mode='before')
    @classmethod
    def normalize_legacy_fields(cls, data):
        if not isinstance(data, dict):
            return data
        d = dict(data)
        if d.get("id") is not None:
            d["id"] = str(d["id"])
        if d.get("package_id") is not None:
            d["package_id"] = str(d["package_id"])
        if not d.get("event_date") and d.get("date"):
            d["event_date"] = d["date"]
        d["selected_dish_ids"] = [str(x) for x in (d.get("selected_dish_ids") or d.get("dish_ids") or [])]
        d["add_ons"] = d.get("add_ons") or []
        return d

    def to_domain(self, package: Optional[PackageRef] = None) -> CartLine:
        ref = self.package.to_domain() if self.package is not None else package
        if ref is None:
            raise ValidationError(f"Cart line '{self.id}' carries no package pricing basis")
        # a null guest count means "the package baseline"
        guests = self.guests or ref.people_count
        price = self.price_at_time if self.price_at_time is not None else Decimal("0")
        return CartLine(
            id=self.id, package=ref, guests=guests, price_at_time=price,
            selected_dish_ids=self.selected_dish_ids,
            add_ons=[a.to_domain() for a in self.add_ons],
            owner_id=self.owner_id, location=self.location, event_date=self.event_date,
            event_type=self.event_type, created_at=self.created_at, updated_at=self.updated_at,
        )


def parse_package(raw: Any) -> Package:
    """Validate and normalize one catalog package payload."""
    try:
        return PackagePayload.model_validate(unwrap_envelope(raw)).to_domain()
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid package payload: {e}") from e


def parse_packages(raw: Any) -> List[Package]:
    return [parse_package(p) for p in unwrap_list(raw)]


def parse_cart_line(raw: Any, package: Optional[PackageRef] = None) -> CartLine:
    try:
        return CartLinePayload.model_validate(unwrap_envelope(raw)).to_domain(package)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid cart line payload: {e}") from e


def parse_cart_lines(raw: Any) -> List[CartLine]:
    return [parse_cart_line(line) for line in unwrap_list(raw)]


# --- HTTP input schemas ----------------------------------------------------

class QuoteInput(BaseModel):
    """Pricing basis for a quote: a package (total_price + people_count) or an explicit price_per_person."""
    total_price: Optional[Decimal] = Field(None, ge=0)
    people_count: Optional[int] = Field(None, ge=1)
    price_per_person: Optional[Decimal] = Field(None, ge=0)
    guests: int = Field(..., ge=1)
    add_ons: List[AddOnPayload] = Field(default_factory=list)

    @model_validator(mode='after')
    def require_basis(self):
        if self.price_per_person is None and (self.total_price is None or self.people_count is None):
            raise ValueError('Provide price_per_person or both total_price and people_count')
        return self

    def basis(self) -> Decimal:
        if self.total_price is not None and self.people_count is not None:
            return self.total_price / Decimal(self.people_count)
        return self.price_per_person


class SelectionInput(BaseModel):
    package: PackagePayload
    selected: List[str] = Field(default_factory=list)


class ToggleInput(SelectionInput):
    dish_id: str = Field(..., min_length=1)


class CartLineInput(BaseModel):
    """Body of POST/PUT /api/user/cart/items."""
    package_id: Optional[str] = None
    package: Optional[PackageRefPayload] = None
    guests: Optional[int] = Field(None, ge=1)
    price_at_time: Optional[Decimal] = Field(None, ge=0)
    selected_dish_ids: List[str] = Field(default_factory=list)
    add_ons: List[AddOnPayload] = Field(default_factory=list)
    location: Optional[str] = None
    event_date: Optional[str] = Field(None, alias="date")
    event_type: Optional[str] = None

    model_config = {"populate_by_name": True}


class CustomPackageInput(BaseModel):
    dish_ids: List[str] = Field(..., min_length=1)
    people_count: int = Field(..., ge=1)
    total_price: Decimal = Field(Decimal("0"), ge=0)
    name: str = ""


__all__ = [
    'unwrap_envelope', 'unwrap_list', 'PackagePayload', 'CartLinePayload', 'AddOnPayload',
    'parse_package', 'parse_packages', 'parse_cart_line', 'parse_cart_lines',
    'QuoteInput', 'SelectionInput', 'ToggleInput', 'CartLineInput', 'CustomPackageInput',
]
