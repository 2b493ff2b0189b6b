"""Remote (authenticated) cart store reached through the storefront REST API.

Contract:
  GET    /api/user/cart/items            -> {"success": true, "data": [line, ...]}
  POST   /api/user/cart/items            -> {"success": true, "data": line}
  PUT    /api/user/cart/items/{id}       -> {"success": true, "data": line}
  DELETE /api/user/cart/items/{id}       -> {"success": true, "message": ...}
  POST   /api/user/packages/custom       -> {"success": true, "data": {"id": ...}}
The owner is sent in the X-Owner-Id header.
"""
from __future__ import annotations
import logging
from typing import List

from catering.domain.CartLine import CartLine
from catering.domain.errors import PersistenceFailure, ValidationError
from catering.domain.Dish import money_to_json
from catering.infra.Api_Client import ApiClient
from catering.infra.Cart_Repository import CartRepository
from catering.utilities.validators import parse_cart_line, parse_cart_lines, unwrap_envelope

logger = logging.getLogger(__name__)

CART_ITEMS_PATH = "/api/user/cart/items"
CUSTOM_PACKAGES_PATH = "/api/user/packages/custom"


def _line_body(line: CartLine) -> dict:
    return {
        "package_id": line.package_id,
        "package": line.package.to_dict(),
        "guests": line.guests,
        "price_at_time": money_to_json(line.price_at_time),
        "selected_dish_ids": list(line.selected_dish_ids),
        "add_ons": [a.to_dict() for a in line.add_ons],
        "location": line.location,
        "date": line.event_date,
        "event_type": line.event_type,
    }


class RemoteCartClient(ApiClient):
    def get_remote_cart_lines(self, owner_id: str) -> List[CartLine]:
        body = self.request("GET", CART_ITEMS_PATH, owner_id=owner_id)
        try:
            return parse_cart_lines(body)
        except ValidationError as e:
            raise PersistenceFailure(f"Remote cart returned an invalid payload: {e}", cause=e) from e

    def put_remote_cart_line(self, owner_id: str, line: CartLine) -> CartLine:
        """Create (no server id yet) or update a line; returns the line the server stored."""
        if line.is_local:
            body = self.request("POST", CART_ITEMS_PATH, owner_id=owner_id, json=_line_body(line))
        else:
            body = self.request("PUT", f"{CART_ITEMS_PATH}/{line.id}", owner_id=owner_id, json=_line_body(line))
        try:
            return parse_cart_line(body, package=line.package)
        except ValidationError as e:
            raise PersistenceFailure(f"Remote cart echoed an invalid line: {e}", line_id=line.id, cause=e) from e

    def remove_remote_cart_line(self, owner_id: str, line_id: str) -> None:
        # 404 means the line is already gone, which is what removal wants
        self.request("DELETE", f"{CART_ITEMS_PATH}/{line_id}", owner_id=owner_id, allow_not_found=True)

    def create_custom_package(self, owner_id: str, dish_ids: List[str], people_count: int,
                              total_price=0, name: str = "") -> str:
        """Create a package from a locally built dish list; returns the server package id."""
        body = self.request("POST", CUSTOM_PACKAGES_PATH, owner_id=owner_id, json={
            "dish_ids": list(dish_ids),
            "people_count": people_count,
            "total_price": money_to_json(total_price),
            "name": name,
        })
        data = unwrap_envelope(body) or {}
        package_id = data.get("id") if isinstance(data, dict) else None
        if not package_id:
            raise PersistenceFailure("Remote store did not return an id for the custom package")
        return str(package_id)


class RemoteCartRepository(CartRepository):
    """RemoteCartClient bound to a single authenticated owner."""

    name = "remote"

    def __init__(self, client: RemoteCartClient, owner_id: str):
        if not owner_id:
            raise ValidationError("Remote cart repository requires an owner id")
        self.client = client
        self.owner_id = owner_id

    def list_lines(self) -> List[CartLine]:
        return self.client.get_remote_cart_lines(self.owner_id)

    def put_line(self, line: CartLine) -> CartLine:
        stored = self.client.put_remote_cart_line(self.owner_id, line)
        if stored.owner_id is None:
            stored.owner_id = self.owner_id
        return stored

    def remove_line(self, line_id: str) -> None:
        self.client.remove_remote_cart_line(self.owner_id, line_id)


__all__ = ['RemoteCartClient', 'RemoteCartRepository', 'CART_ITEMS_PATH', 'CUSTOM_PACKAGES_PATH']
