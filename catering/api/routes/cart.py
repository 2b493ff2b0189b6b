"""Server side of the remote cart contract (/api/user/cart/items).

Each owner's cart is a JSON file under SERVER_CART_DIR; the owner comes from
the X-Owner-Id header. Lines are upserted by package, so an owner never holds
two lines for the same package.
"""
import json
import logging
from pathlib import Path
from typing import List, Optional
from uuid import uuid4

from fastapi import APIRouter, Header, HTTPException

from catering.domain.CartLine import CartLine
from catering.domain.Dish import money_to_json
from catering.domain.errors import PersistenceFailure, ValidationError
from catering.infra.Cart_Repository import LocalCartRepository, atomic_write_json
from catering.infra.paths import SERVER_CART_DIR
from catering.logic.pricing.calculator import compute_total
from catering.utilities.validators import CartLineInput, CustomPackageInput

router = APIRouter(prefix="/api/user", tags=["cart"])
logger = logging.getLogger(__name__)


def _server_id() -> str:
    return uuid4().hex


def _repo(owner_id: Optional[str]) -> LocalCartRepository:
    if not owner_id:
        raise HTTPException(status_code=401, detail="Missing X-Owner-Id header")
    safe = "".join(ch for ch in owner_id if ch.isalnum() or ch in "-_")
    if not safe:
        raise HTTPException(status_code=400, detail="Invalid owner id")
    return LocalCartRepository(Path(SERVER_CART_DIR) / f"cart_{safe}.json", owner_id=owner_id, id_factory=_server_id)


def _line_from_input(payload: CartLineInput, owner_id: str, base: Optional[CartLine] = None) -> CartLine:
    """Build the line to store; on update, fields the client did not send keep their stored value."""
    if payload.package is not None:
        ref = payload.package.to_domain()
    elif base is not None:
        ref = base.package
    else:
        raise ValidationError("Cart line needs the package pricing snapshot")
    if payload.package_id and payload.package_id != ref.id:
        raise ValidationError("package_id does not match the package snapshot")

    sent = payload.model_fields_set
    current = {} if base is None else {
        "guests": base.guests,
        "selected_dish_ids": list(base.selected_dish_ids),
        "location": base.location,
        "event_date": base.event_date,
        "event_type": base.event_type,
    }

    def pick(field):
        if field in sent or field not in current:
            return getattr(payload, field)
        return current[field]

    guests = pick("guests") or ref.people_count
    if "add_ons" in sent or base is None:
        add_ons = [a.to_domain() for a in payload.add_ons]
    else:
        add_ons = list(base.add_ons)
    price = payload.price_at_time
    if price is None:
        price = compute_total(ref.price_per_person, guests, add_ons)
    return CartLine(
        id=base.id if base is not None else None, package=ref, guests=guests, price_at_time=price,
        selected_dish_ids=pick("selected_dish_ids"), add_ons=add_ons, owner_id=owner_id,
        location=pick("location"), event_date=pick("event_date"), event_type=pick("event_type"),
        created_at=base.created_at if base is not None else None,
    )


def _lines(repo: LocalCartRepository) -> List[CartLine]:
    try:
        return repo.list_lines()
    except PersistenceFailure as e:
        logger.error(f"Server cart read failed: {e}")
        raise HTTPException(status_code=503, detail=str(e))


def _store(repo: LocalCartRepository, line: CartLine) -> dict:
    try:
        stored = repo.put_line(line)
    except PersistenceFailure as e:
        logger.error(f"Server cart write failed: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    return {"success": True, "data": stored.to_dict()}


@router.get("/cart/items")
def list_cart_items(x_owner_id: Optional[str] = Header(default=None)):
    repo = _repo(x_owner_id)
    lines = _lines(repo)
    return {"success": True, "data": [line.to_dict() for line in lines], "count": len(lines)}


@router.post("/cart/items")
def create_cart_item(payload: CartLineInput, x_owner_id: Optional[str] = Header(default=None)):
    repo = _repo(x_owner_id)
    try:
        line = _line_from_input(payload, x_owner_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _store(repo, line)


@router.put("/cart/items/{item_id}")
def update_cart_item(item_id: str, payload: CartLineInput, x_owner_id: Optional[str] = Header(default=None)):
    repo = _repo(x_owner_id)
    existing = next((line for line in _lines(repo) if line.id == item_id), None)
    if existing is None:
        raise HTTPException(status_code=404, detail="Cart item not found")
    try:
        line = _line_from_input(payload, x_owner_id, base=existing)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _store(repo, line)


@router.delete("/cart/items/{item_id}")
def delete_cart_item(item_id: str, x_owner_id: Optional[str] = Header(default=None)):
    repo = _repo(x_owner_id)
    if not any(line.id == item_id for line in _lines(repo)):
        raise HTTPException(status_code=404, detail="Cart item not found")
    try:
        repo.remove_line(item_id)
    except PersistenceFailure as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {"success": True, "message": "Cart item removed"}


@router.post("/packages/custom")
def create_custom_package(payload: CustomPackageInput, x_owner_id: Optional[str] = Header(default=None)):
    """Register a package built from a dish list; returns its server id."""
    _repo(x_owner_id)
    registry = Path(SERVER_CART_DIR) / "custom_packages.json"
    try:
        entries = json.loads(registry.read_text(encoding="utf-8")) if registry.exists() else []
    except (OSError, json.JSONDecodeError) as e:
        raise HTTPException(status_code=503, detail=f"Custom package registry unavailable: {e}")
    package_id = f"pkg_{uuid4().hex[:12]}"
    entries.append({"id": package_id, "owner_id": x_owner_id, "dish_ids": payload.dish_ids,
                    "people_count": payload.people_count, "total_price": money_to_json(payload.total_price),
                    "name": payload.name})
    try:
        atomic_write_json(registry, entries)
    except PersistenceFailure as e:
        logger.error(f"Custom package registry write failed: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    return {"success": True, "data": {"id": package_id}}
