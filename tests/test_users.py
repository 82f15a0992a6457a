import pytest

from webporto.store import RecordNotFound
from webporto.users import (
    User,
    UserRepository,
    UserService,
    calculate_pagination,
)


@pytest.fixture
def repo():
    return UserRepository()


@pytest.fixture
def service(repo):
    return UserService(repo)


def _add_plain(repo, count, role="editor"):
    return [
        repo.create(User(username=f"user{i}", email=f"user{i}@example.com", role=role))
        for i in range(count)
    ]


@pytest.mark.parametrize("total,limit", [(0, 5), (1, 5), (5, 5), (6, 5), (23, 7)])
def test_pagination_invariants(total, limit):
    info = calculate_pagination(total, 2, limit)
    assert info.total == total
    assert info.page == 2
    assert info.limit == limit
    assert info.total_pages * limit >= total
    assert max(info.total_pages - 1, 0) * limit < total or total == 0


def test_pagination_exact_and_partial():
    assert calculate_pagination(10, 1, 5).total_pages == 2
    assert calculate_pagination(11, 1, 5).total_pages == 3


def test_pagination_rejects_zero_limit():
    with pytest.raises(ValueError):
        calculate_pagination(10, 1, 0)


def test_repository_create_assigns_id_and_finds(repo):
    user = repo.create(User(username="alice", email="alice@example.com"))
    assert user.id >= 1
    found = repo.find_by_id(user.id)
    assert found.username == "alice"
    assert repo.find_by_email("alice@example.com").id == user.id


def test_repository_returns_copies(repo):
    user = repo.create(User(username="alice", email="alice@example.com"))
    found = repo.find_by_id(user.id)
    found.username = "changed"
    assert repo.find_by_id(user.id).username == "alice"


def test_repository_missing_raises(repo):
    with pytest.raises(RecordNotFound):
        repo.find_by_id(99)
    with pytest.raises(RecordNotFound):
        repo.find_by_email("nobody@example.com")


def test_repository_delete(repo):
    user = repo.create(User(username="bob", email="bob@example.com"))
    repo.delete(user.id)
    assert repo.find_all() == []


def test_get_all_slices_page(repo, service):
    created = _add_plain(repo, 5)
    users, info = service.get_all(2, 2)
    assert [u.username for u in users] == [created[2].username, created[3].username]
    assert info.total == 5


def test_get_all_last_partial_page(repo, service):
    created = _add_plain(repo, 5)
    users, _ = service.get_all(3, 2)
    assert [u.username for u in users] == [created[4].username]


def test_get_all_beyond_end_is_empty(repo, service):
    _add_plain(repo, 3)
    users, info = service.get_all(5, 2)
    assert users == []
    assert info.total == 3


def test_default_admin_prefers_admin(repo, service):
    _add_plain(repo, 2)
    admin = repo.create(User(username="root", email="root@example.com", role="admin"))
    assert service.get_default_admin().id == admin.id


def test_default_admin_falls_back_to_first(repo, service):
    created = _add_plain(repo, 3)
    assert service.get_default_admin().id == created[0].id


def test_default_admin_without_users_raises(service):
    with pytest.raises(RecordNotFound):
        service.get_default_admin()


def test_create_hashes_password(service):
    password = "password"
    user = service.create(User(username="alice", email="alice@example.com", password_hash=password))
    stored = service.get_by_id(user.id)
    assert stored.password_hash != password
    assert stored.password_hash.startswith("$2")
    assert service.check_password(stored.password_hash, password) is True
    assert service.check_password(stored.password_hash, "secret") is False


def test_check_password_with_bad_hash_is_false(service):
    assert service.check_password("not-a-hash", "password") is False


def test_update_overwrites_fields_and_keeps_hash(service):
    password = "password"
    user = service.create(User(username="alice", email="alice@example.com", password_hash=password))
    old_hash = service.get_by_id(user.id).password_hash
    service.update(user.id, User(username="alicia", email="alicia@example.com", role="admin"))
    stored = service.get_by_id(user.id)
    assert (stored.username, stored.email, stored.role) == ("alicia", "alicia@example.com", "admin")
    assert stored.password_hash == old_hash


def test_update_rehashes_new_password(service):
    password = "password"
    user = service.create(User(username="alice", email="alice@example.com", password_hash=password))
    service.update(user.id, User(username="alice", email="alice@example.com", password_hash="secret"))
    stored = service.get_by_id(user.id)
    assert service.check_password(stored.password_hash, "secret") is True
    assert service.check_password(stored.password_hash, password) is False


def test_update_missing_raises(service):
    with pytest.raises(RecordNotFound):
        service.update(42, User(username="x"))


def test_service_delete(service):
    user = service.create(User(username="bob", email="bob@example.com", password_hash="token"))
    service.delete(user.id)
    with pytest.raises(RecordNotFound):
        service.get_by_email("bob@example.com")