import json
import httpx
import pytest
from catering.domain.Package import CustomizationPolicy
from catering.domain.errors import PersistenceFailure, ValidationError
from catering.infra.Catalog_Gateway import CatalogGateway
from catering.infra.Order_Gateway import OrderGateway

LEGACY_PACKAGE = {
    "id": 7,
    "name": "Majlis Feast",
    "minimum_people": 50,
    "total_price": "5000.00",
    "price_per_person": 999,
    "customisation_type": "CUSTOMISABLE",
    "caterer": {"id": 42},
    "category_selections": [{"category": {"id": 3, "name": "Starters"}, "num_dishes_to_select": 2}],
    "items": [
        {"id": 1, "dish": {"id": 11, "name": "Hummus", "category": {"id": 3, "name": "Starters"}, "price": None}},
        {"id": 2, "dish": {"id": 12, "name": "Mandi", "category": "Mains", "price": 0}, "quantity": None},
    ],
}


def _client(handler, base_url="http://catalog"):
    return httpx.Client(transport=httpx.MockTransport(handler), base_url=base_url)


def test_fetch_package_normalizes_legacy_payload():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"success": True, "data": LEGACY_PACKAGE})

    gateway = CatalogGateway(base_url="http://catalog", token="secret", client=_client(handler))
    package = gateway.fetch_package("7")
    assert seen == {"path": "/api/user/packages/7", "auth": "Bearer secret"}
    assert package.id == "7"
    assert package.people_count == 50
    assert package.policy is CustomizationPolicy.FIXED_WITH_LIMITS
    assert package.caterer_id == "42"
    assert package.price_per_person == 100
    assert package.dish_ids == ["11", "12"]
    assert package.items[1].category.name == "Mains"


def test_fetch_package_not_found():
    gateway = CatalogGateway(client=_client(lambda request: httpx.Response(404, json={"message": "Package not found"})))
    with pytest.raises(ValidationError):
        gateway.fetch_package("missing")


def test_fetch_caterer_packages_skips_invalid_entries():
    def handler(request):
        assert request.url.path == "/api/user/caterers/42/packages"
        return httpx.Response(200, json={"data": {"data": [LEGACY_PACKAGE, {"id": "broken"}], "count": 2}})

    packages = CatalogGateway(client=_client(handler)).fetch_caterer_packages("42")
    assert [p.id for p in packages] == ["7"]


def test_server_errors_become_persistence_failures():
    gateway = CatalogGateway(client=_client(lambda request: httpx.Response(500, json={"message": "boom"})))
    with pytest.raises(PersistenceFailure) as exc:
        gateway.fetch_caterer_packages("42")
    assert "boom" in str(exc.value)


def test_transport_errors_become_persistence_failures():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(PersistenceFailure):
        CatalogGateway(client=_client(handler)).fetch_package("7")


def test_create_order_posts_line_ids():
    seen = {}

    def handler(request):
        seen["owner"] = request.headers.get("X-Owner-Id")
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={"success": True, "data": {"id": "ord_9", "status": "PENDING"}})

    gateway = OrderGateway(client=_client(handler, "http://api"))
    order = gateway.create_order("user-1", ["a1", "b2"])
    assert order["id"] == "ord_9"
    assert seen == {"owner": "user-1", "body": {"cart_item_ids": ["a1", "b2"]}}


def test_create_order_validation():
    gateway = OrderGateway(client=_client(lambda request: httpx.Response(200, json={"success": True, "data": {}}), "http://api"))
    with pytest.raises(ValidationError):
        gateway.create_order("user-1", [])
    with pytest.raises(PersistenceFailure):
        gateway.create_order("user-1", ["a1"])
