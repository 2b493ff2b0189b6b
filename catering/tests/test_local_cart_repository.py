import json
import pytest
from catering.domain.CartLine import AddOn
from catering.domain.errors import PersistenceFailure, ValidationError
from catering.infra.Cart_Repository import AuthState, LocalCartRepository, select_cart_repository
from catering.infra.Remote_Cart_Repository import RemoteCartRepository
from catering.tests.builders import cart_line


def test_put_assigns_local_id_and_persists(tmp_path):
    path = tmp_path / "cart.json"
    repo = LocalCartRepository(path)
    stored = repo.put_local_cart_line(cart_line(guests=75, price=7540, add_ons=[AddOn("cake", 20, 2)]))
    assert stored.id.startswith("local_")
    assert stored.is_local

    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert len(on_disk) == 1
    assert on_disk[0]["package_id"] == "pkg_party"
    assert on_disk[0]["price_at_time"] == 7540

    reloaded = LocalCartRepository(path).get_local_cart_lines()
    assert [line.id for line in reloaded] == [stored.id]
    assert reloaded[0].add_ons == [AddOn("cake", 20, 2)]


def test_put_upserts_by_package(tmp_path):
    repo = LocalCartRepository(tmp_path / "cart.json")
    first = repo.put_line(cart_line(guests=50, price=5000))
    second = repo.put_line(cart_line(guests=60, price=6000))
    lines = repo.list_lines()
    assert len(lines) == 1
    assert second.id == first.id
    assert lines[0].guests == 60
    assert lines[0].created_at == first.created_at


def test_remove_is_idempotent(tmp_path):
    repo = LocalCartRepository(tmp_path / "cart.json")
    stored = repo.put_line(cart_line())
    repo.put_line(cart_line("pkg_other"))
    repo.remove_local_cart_line(stored.id)
    repo.remove_local_cart_line(stored.id)
    repo.remove_local_cart_line("local_unknown")
    assert [line.package_id for line in repo.list_lines()] == ["pkg_other"]


def test_missing_file_is_an_empty_cart(tmp_path):
    repo = LocalCartRepository(tmp_path / "nested" / "cart.json")
    assert repo.list_lines() == []
    repo.clear()
    assert not (tmp_path / "nested" / "cart.json").exists()


def test_corrupt_file_raises_persistence_failure(tmp_path):
    path = tmp_path / "cart.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(PersistenceFailure):
        LocalCartRepository(path).list_lines()


def test_unreadable_entries_are_skipped(tmp_path):
    path = tmp_path / "cart.json"
    repo = LocalCartRepository(path)
    repo.put_line(cart_line())
    entries = json.loads(path.read_text(encoding="utf-8"))
    entries.append({"id": "local_broken", "guests": 3})
    path.write_text(json.dumps(entries), encoding="utf-8")
    assert [line.package_id for line in repo.list_lines()] == ["pkg_party"]


def test_select_cart_repository(tmp_path):
    local = LocalCartRepository(tmp_path / "cart.json")
    assert select_cart_repository(AuthState.anonymous(), local) is local
    with pytest.raises(ValidationError):
        select_cart_repository(AuthState("user-1"), local)
    remote = select_cart_repository(AuthState("user-1"), local, remote_client=object())
    assert isinstance(remote, RemoteCartRepository)
    assert remote.owner_id == "user-1"
