"""Order creation: hands finalized cart line ids to the storefront API."""
from __future__ import annotations
from typing import Any, Dict, List

from catering.domain.errors import PersistenceFailure, ValidationError
from catering.infra.Api_Client import ApiClient
from catering.utilities.validators import unwrap_envelope

ORDERS_PATH = "/api/user/orders"


class OrderGateway(ApiClient):
    def create_order(self, owner_id: str, cart_line_ids: List[str]) -> Dict[str, Any]:
        """POST the line ids; returns the created order as the API describes it."""
        if not cart_line_ids:
            raise ValidationError("Cannot create an order from an empty cart")
        body = self.request("POST", ORDERS_PATH, owner_id=owner_id, json={"cart_item_ids": list(cart_line_ids)})
        order = unwrap_envelope(body)
        if not isinstance(order, dict) or not order.get("id"):
            raise PersistenceFailure("Order API did not return an order id")
        return order


__all__ = ['OrderGateway', 'ORDERS_PATH']
