from datetime import timedelta

import pytest

from core.errors import Conflict, NotFound, Unauthenticated, ValidationError
from core.security import create_access_token, create_token_for_user, decode_token, resolve_token
from services.auth_service import AuthService


@pytest.fixture
def auth(storage):
    return AuthService(storage)


def test_register_returns_usable_token(auth, storage):
    user, token = auth.register("Ada", "Ada@Example.com", "secret123", "backend")

    assert user.email == "ada@example.com"
    assert user.role == "backend"
    assert user.password_hash != "secret123"
    assert decode_token(token)["sub"] == user.id
    assert resolve_token(token, storage).id == user.id


def test_register_duplicate_email(auth):
    auth.register("Ada", "ada@example.com", "secret123")
    with pytest.raises(Conflict):
        auth.register("Other Ada", "ADA@example.com", "secret456")


def test_login(auth):
    user, _ = auth.register("Ada", "ada@example.com", "secret123")

    logged_in, token = auth.login("ADA@example.com", "secret123")
    assert logged_in.id == user.id
    assert token

    with pytest.raises(Unauthenticated):
        auth.login("ada@example.com", "wrong-password")
    with pytest.raises(Unauthenticated):
        auth.login("nobody@example.com", "secret123")


def test_deactivated_user_loses_access(auth, storage):
    user, token = auth.register("Ada", "ada@example.com", "secret123")

    auth.set_active("ada@example.com", False)

    with pytest.raises(Unauthenticated):
        resolve_token(token, storage)
    with pytest.raises(Unauthenticated):
        auth.login("ada@example.com", "secret123")

    auth.set_active("ada@example.com", True)
    assert resolve_token(token, storage).id == user.id


def test_set_active_unknown_user(auth):
    with pytest.raises(NotFound):
        auth.set_active("ghost@example.com", False)


def test_bad_tokens_are_rejected(storage, owner):
    expired = create_access_token({"sub": owner.id}, expires_delta=timedelta(days=-1))
    for token in (None, "", "not-a-jwt", expired, create_access_token({"role": "x"})):
        with pytest.raises(Unauthenticated):
            resolve_token(token, storage)

    assert resolve_token(create_token_for_user(owner), storage).id == owner.id


def test_token_for_deleted_user(storage, owner):
    token = create_token_for_user(owner)
    storage.delete(owner)
    with pytest.raises(Unauthenticated):
        resolve_token(token, storage)


def test_update_profile(auth, owner):
    updated = auth.update_profile(owner, name="Olivia B.", role="design")
    assert updated.name == "Olivia B."
    assert updated.role == "design"


def test_directory_lists_active_users_by_name(auth, make_user):
    make_user("Zed")
    make_user("amy")
    make_user("Bob", is_active=False)

    assert [u.name for u in auth.list_users()] == ["amy", "Zed"]


def test_search_users(auth, make_user):
    for i in range(12):
        make_user(f"Dev{i:02d}", f"dev{i:02d}@corp.example")
    make_user("Other", "other@example.com")

    assert len(auth.search_users("CORP")) == 10
    assert [u.email for u in auth.search_users("other@")] == ["other@example.com"]
    with pytest.raises(ValidationError):
        auth.search_users("   ")
