import pytest
from catering.domain.errors import PersistenceFailure, ValidationError
from catering.events.Event_Bus import (
    CART_LINE_REMOVED, CART_LINE_SAVED, CART_MIGRATION_FAILED, CART_STALE_RESPONSE_DISCARDED,
)
from catering.infra.Cart_Repository import AuthState, LocalCartRepository
from catering.logic.cart.mutator import CartLineMutator
from catering.logic.cart.reconciler import CartReconciler
from catering.tests.builders import (
    EventRecorder, FakeRemoteClient, MemoryRepository, cart_line, package_ref, party_package,
)


@pytest.fixture
def recorder():
    return EventRecorder(CART_LINE_SAVED, CART_LINE_REMOVED, CART_MIGRATION_FAILED, CART_STALE_RESPONSE_DISCARDED)


@pytest.fixture
def local(tmp_path):
    return LocalCartRepository(tmp_path / "cart.json")


def test_add_to_cart_twice_keeps_one_line(local, recorder):
    reconciler = CartReconciler(AuthState.anonymous(), local, event_bus=recorder.bus)
    first = reconciler.add_to_cart(party_package(), 75)
    second = reconciler.add_to_cart(party_package(), 60, location="Dubai Marina")
    assert first.id == second.id
    assert len(reconciler.lines()) == 1
    stored = local.list_lines()
    assert len(stored) == 1
    assert stored[0].guests == 60
    assert stored[0].price_at_time == 6000
    assert stored[0].location == "Dubai Marina"
    assert recorder.names() == [CART_LINE_SAVED, CART_LINE_SAVED]


def test_fixed_package_stores_every_dish(local):
    reconciler = CartReconciler(AuthState.anonymous(), local)
    line = reconciler.add_to_cart(party_package(policy="FIXED", with_limits=False), 50, selected_dish_ids=["hummus"])
    assert list(line.selected_dish_ids) == ["hummus", "fattoush", "kibbeh", "mandi", "machboos", "umm_ali"]


def test_customized_selection_is_kept(local):
    reconciler = CartReconciler(AuthState.anonymous(), local)
    line = reconciler.add_to_cart(party_package(), 50, selected_dish_ids=["hummus", "mandi"])
    assert list(line.selected_dish_ids) == ["hummus", "mandi"]


def test_invalid_guests_never_reach_the_store():
    repo = MemoryRepository()
    reconciler = CartReconciler(AuthState.anonymous(), repo)
    with pytest.raises(ValidationError):
        reconciler.add_to_cart(party_package(), 0)
    with pytest.raises(ValidationError):
        reconciler.add_to_cart(party_package(minimum_guests=20), 10)
    assert repo.put_calls == 0
    assert reconciler.lines() == []


def test_remove_is_idempotent(local, recorder):
    reconciler = CartReconciler(AuthState.anonymous(), local, event_bus=recorder.bus)
    line = reconciler.add_to_cart(party_package(), 50)
    reconciler.remove(line.id)
    reconciler.remove(line.id)
    reconciler.remove("local_missing")
    assert reconciler.lines() == []
    assert local.list_lines() == []
    assert recorder.names().count(CART_LINE_REMOVED) == 1


def test_failed_add_is_rolled_back():
    repo = MemoryRepository()
    repo.fail = True
    reconciler = CartReconciler(AuthState.anonymous(), repo)
    with pytest.raises(PersistenceFailure):
        reconciler.add_to_cart(party_package(), 50)
    assert reconciler.lines() == []


def test_failed_update_restores_previous_line():
    repo = MemoryRepository()
    reconciler = CartReconciler(AuthState.anonymous(), repo)
    line = reconciler.add_to_cart(party_package(), 50)
    repo.fail = True
    with pytest.raises(PersistenceFailure):
        CartLineMutator(reconciler).update_guests(line.id, 60)
    assert reconciler.find(line.id).guests == 50
    assert reconciler.find(line.id).price_at_time == 5000


def test_failed_remove_restores_line():
    repo = MemoryRepository()
    reconciler = CartReconciler(AuthState.anonymous(), repo)
    line = reconciler.add_to_cart(party_package(), 50)
    repo.fail = True
    with pytest.raises(PersistenceFailure):
        reconciler.remove(line.id)
    assert reconciler.find(line.id) is not None


def test_stale_response_is_discarded(recorder):
    repo = MemoryRepository()
    reconciler = CartReconciler(AuthState.anonymous(), repo, event_bus=recorder.bus)
    mutator = CartLineMutator(reconciler)
    line = reconciler.add_to_cart(party_package(), 50)

    # a newer edit is issued while the first write is still in flight
    repo.on_put = lambda: mutator.update_guests(line.id, 80)
    result = mutator.update_guests(line.id, 60)

    assert result.guests == 80
    assert reconciler.find(line.id).guests == 80
    assert repo.lines[line.id].guests == 80
    assert CART_STALE_RESPONSE_DISCARDED in recorder.names()


def test_migration_moves_lines_and_keeps_failures_local(local, recorder):
    remote = FakeRemoteClient()
    remote.put_remote_cart_line("user-1", cart_line("pkg_a", guests=10, price=1000))
    local.put_line(cart_line("pkg_a", guests=30, price=3000))
    local.put_line(cart_line("pkg_b", guests=20, price=2000))
    failing = local.put_line(cart_line("pkg_c", guests=40, price=4000))
    remote.failing_packages.add("pkg_c")

    reconciler = CartReconciler(AuthState.anonymous(), local, remote_client=remote, event_bus=recorder.bus)
    report = reconciler.migrate_local_cart_to_remote("user-1")

    assert not report.complete
    assert len(report.migrated) == 2
    assert [line.id for line, _ in report.failed] == [failing.id]
    assert report.to_dict()["failed"][0]["package_id"] == "pkg_c"
    assert [line.id for line in local.list_lines()] == [failing.id]
    remote_lines = {line.package_id: line for line in remote.get_remote_cart_lines("user-1")}
    assert sorted(remote_lines) == ["pkg_a", "pkg_b"]
    assert remote_lines["pkg_a"].guests == 30
    assert remote_lines["pkg_b"].price_at_time == 2000
    assert reconciler.auth.owner_id == "user-1"
    assert recorder.names().count(CART_MIGRATION_FAILED) == 1

    # retry after the remote store recovers; repeating is harmless
    remote.failing_packages.clear()
    assert reconciler.migrate_local_cart_to_remote("user-1").complete
    assert reconciler.migrate_local_cart_to_remote("user-1").migrated == []
    assert local.list_lines() == []
    assert sorted(line.package_id for line in remote.get_remote_cart_lines("user-1")) == ["pkg_a", "pkg_b", "pkg_c"]
    assert len(reconciler.lines()) == 3


def test_migration_creates_custom_packages_first(local):
    remote = FakeRemoteClient()
    local.put_line(cart_line("custom_1700000000", guests=12, price=1200, selected_dish_ids=["hummus", "mandi"]))
    reconciler = CartReconciler(AuthState.anonymous(), local, remote_client=remote)

    remote.fail_custom = True
    assert not reconciler.migrate_local_cart_to_remote("user-1").complete
    assert len(local.list_lines()) == 1

    remote.fail_custom = False
    report = reconciler.migrate_local_cart_to_remote("user-1")
    assert report.complete
    assert remote.custom_packages == [["hummus", "mandi"]]
    assert [line.package_id for line in remote.get_remote_cart_lines("user-1")] == ["pkg_srv_1"]
    assert local.list_lines() == []


class _FlakyLocalRepository(LocalCartRepository):
    """Local store whose next `fail_removals` removals raise."""

    def __init__(self, path):
        super().__init__(path)
        self.fail_removals = 0

    def remove_line(self, line_id):
        if self.fail_removals:
            self.fail_removals -= 1
            raise PersistenceFailure("disk full", line_id=line_id)
        super().remove_line(line_id)


def test_custom_package_is_created_once_when_local_removal_fails(tmp_path):
    local = _FlakyLocalRepository(tmp_path / "cart.json")
    local.put_line(cart_line("custom_1", guests=12, price=1200, selected_dish_ids=["hummus"]))
    remote = FakeRemoteClient()
    reconciler = CartReconciler(AuthState.anonymous(), local, remote_client=remote)

    local.fail_removals = 1
    with pytest.raises(PersistenceFailure):
        reconciler.migrate_local_cart_to_remote("user-1")
    assert [line.package_id for line in local.list_lines()] == ["pkg_srv_1"]

    assert reconciler.migrate_local_cart_to_remote("user-1").complete
    assert remote.custom_packages == [["hummus"]]
    assert [line.package_id for line in remote.get_remote_cart_lines("user-1")] == ["pkg_srv_1"]
    assert local.list_lines() == []


def test_custom_package_is_reused_when_remote_upsert_fails(local):
    local.put_line(cart_line("custom_1", guests=12, price=1200, selected_dish_ids=["mandi"]))
    remote = FakeRemoteClient()
    remote.failing_packages.add("pkg_srv_1")
    reconciler = CartReconciler(AuthState.anonymous(), local, remote_client=remote)

    assert not reconciler.migrate_local_cart_to_remote("user-1").complete
    remote.failing_packages.clear()
    assert reconciler.migrate_local_cart_to_remote("user-1").complete
    assert len(remote.custom_packages) == 1
    assert len(remote.get_remote_cart_lines("user-1")) == 1


def test_migration_requires_owner_and_client(local):
    with pytest.raises(ValidationError):
        CartReconciler(AuthState.anonymous(), local, remote_client=FakeRemoteClient()).migrate_local_cart_to_remote("")
    with pytest.raises(ValidationError):
        CartReconciler(AuthState.anonymous(), local).migrate_local_cart_to_remote("user-1")


def test_authenticated_cart_routes_to_remote_and_logout_back(local):
    remote = FakeRemoteClient()
    reconciler = CartReconciler(AuthState("user-1"), local, remote_client=remote)
    reconciler.add_to_cart(package_ref(), 50)
    assert local.list_lines() == []
    assert len(remote.get_remote_cart_lines("user-1")) == 1

    reconciler.logout()
    assert reconciler.lines() == []
    reconciler.add_to_cart(package_ref("pkg_other"), 5)
    assert [line.package_id for line in local.list_lines()] == ["pkg_other"]


class _OrderGateway:
    def __init__(self):
        self.calls = []

    def create_order(self, owner_id, cart_line_ids):
        self.calls.append((owner_id, list(cart_line_ids)))
        return {"id": "ord_1", "status": "PENDING"}


def test_checkout_requires_authentication(local):
    reconciler = CartReconciler(AuthState.anonymous(), local)
    with pytest.raises(ValidationError):
        reconciler.checkout(_OrderGateway())


def test_checkout_hands_line_ids_to_orders(local):
    remote = FakeRemoteClient()
    gateway = _OrderGateway()
    reconciler = CartReconciler(AuthState("user-1"), local, remote_client=remote)
    line = reconciler.add_to_cart(package_ref(), 50)
    order = reconciler.checkout(gateway)
    assert order["id"] == "ord_1"
    assert gateway.calls == [("user-1", [line.id])]
    assert len(reconciler.cart) == 0
