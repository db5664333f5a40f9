"""Tests for sign-in, registration and admin user management."""

from dataclasses import replace
from datetime import datetime

import pytest
import requests

from core.exceptions import AuthError, NotFoundError, ValidationError
from data import queries
from data.auth import IDENTITY_URL, AuthClient, UserRepository, filter_users
from data.mock_data import DEMO_USERS, MemoryStore
from data.models import User


class HostedStore(MemoryStore):
    """MemoryStore that reports itself as the hosted store, so the live sign-in path runs."""

    source = "firestore"


class FakeResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, params=None, json=None, timeout=None):
        self.calls.append({"url": url, "params": params, "json": json})
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def demo_store():
    store = MemoryStore()
    for u in DEMO_USERS:
        store.set(queries.USERS, u["uid"], {"email": u["email"], "role": u["role"], "name": u["name"]})
    return store


@pytest.fixture
def live_cfg(cfg):
    return replace(cfg, firebase_project_id="green-pastures", firebase_web_api_key="web-key")


class TestMockSignIn:
    def test_demo_admin(self, cfg, demo_store):
        user = AuthClient(cfg, demo_store).sign_in(" Admin@Example.com ", "anything")
        assert user.id == "admin123"
        assert user.is_admin

    def test_unknown_email(self, cfg, demo_store):
        with pytest.raises(AuthError, match="Invalid email or password"):
            AuthClient(cfg, demo_store).sign_in("nobody@example.com", "password")

    def test_missing_password(self, cfg, demo_store):
        with pytest.raises(ValidationError) as exc:
            AuthClient(cfg, demo_store).sign_in("user@example.com", "")
        assert "password" in exc.value.errors

    def test_register_creates_plain_user(self, cfg, demo_store):
        client = AuthClient(cfg, demo_store, now=lambda: datetime(2026, 10, 15, 9, 30))
        user = client.register("New@Example.com", "secret1", " Sam ")
        assert user.id.startswith("user_")
        assert user.email == "new@example.com"
        assert user.name == "Sam"
        assert user.role == "user"
        assert client.sign_in("new@example.com", "x").id == user.id

    def test_register_duplicate_email(self, cfg, demo_store):
        with pytest.raises(AuthError, match="already exists"):
            AuthClient(cfg, demo_store).register("user@example.com", "secret1", "Again")


class TestLiveSignIn:
    def test_loads_profile_from_users(self, live_cfg):
        store = HostedStore()
        store.set(queries.USERS, "uid-1", {"email": "farmer@example.com", "role": "admin", "name": "Farmer"})
        session = FakeSession(FakeResponse(200, {"localId": "uid-1", "idToken": "t"}))

        user = AuthClient(live_cfg, store, session=session).sign_in("farmer@example.com", "pw")

        assert user.is_admin
        call = session.calls[0]
        assert call["url"] == f"{IDENTITY_URL}:signInWithPassword"
        assert call["params"] == {"key": "web-key"}
        assert call["json"]["email"] == "farmer@example.com"

    def test_first_sign_in_creates_profile(self, live_cfg):
        store = HostedStore()
        session = FakeSession(FakeResponse(200, {"localId": "uid-2", "displayName": "Kim"}))
        user = AuthClient(live_cfg, store, session=session).sign_in("kim@example.com", "pw")
        assert user.role == "user"
        assert store.get(queries.USERS, "uid-2")["email"] == "kim@example.com"

    @pytest.mark.parametrize("code,message", [
        ("INVALID_LOGIN_CREDENTIALS", "Invalid email or password"),
        ("USER_DISABLED", "This account has been disabled"),
        ("WEAK_PASSWORD : Password should be at least 6 characters", "Password should be at least 6 characters"),
        ("SOMETHING_NEW", "Sign-in failed"),
    ])
    def test_error_codes(self, live_cfg, code, message):
        session = FakeSession(FakeResponse(400, {"error": {"message": code}}))
        with pytest.raises(AuthError) as exc:
            AuthClient(live_cfg, HostedStore(), session=session).sign_in("a@example.com", "pw")
        assert exc.value.message == message

    def test_missing_api_key(self, cfg):
        with pytest.raises(AuthError, match="FIREBASE_WEB_API_KEY"):
            AuthClient(cfg, HostedStore(), session=FakeSession()).sign_in("a@example.com", "pw")

    def test_network_failure(self, live_cfg):
        session = FakeSession(error=requests.ConnectionError("down"))
        with pytest.raises(AuthError, match="ConnectionError"):
            AuthClient(live_cfg, HostedStore(), session=session).sign_in("a@example.com", "pw")


class TestUserRepository:
    @pytest.fixture
    def users(self, demo_store):
        return UserRepository(demo_store)

    @pytest.fixture
    def admin(self):
        return User(id="admin123", email="admin@example.com", role="admin")

    @pytest.fixture
    def regular(self):
        return User(id="user123", email="user@example.com", role="user")

    def test_list_sorted_by_email(self, users):
        assert [u.email for u in users.list()] == ["admin@example.com", "user@example.com"]

    def test_update_user_name_and_role(self, users, admin, demo_store):
        updated = users.update_user(admin, "user123", "  Pat Farmer ", "admin")
        assert updated.is_admin
        assert updated.name == "Pat Farmer"
        assert demo_store.get(queries.USERS, "user123")["name"] == "Pat Farmer"

    def test_update_user_needs_a_name(self, users, admin):
        with pytest.raises(ValidationError) as exc:
            users.update_user(admin, "user123", " ", "user")
        assert set(exc.value.errors) == {"name"}

    def test_update_unknown_user(self, users, admin):
        with pytest.raises(NotFoundError):
            users.update_user(admin, "ghost", "Ghost", "user")

    def test_rejects_unknown_role(self, users, admin):
        with pytest.raises(ValidationError):
            users.update_user(admin, "user123", "Regular User", "owner")

    def test_non_admin_cannot_manage(self, users, regular):
        with pytest.raises(AuthError):
            users.update_user(regular, "admin123", "Admin User", "user")
        with pytest.raises(AuthError):
            users.delete(regular, "admin123")

    def test_delete(self, users, admin):
        assert users.delete(admin, "user123") == "user123"
        with pytest.raises(NotFoundError):
            users.delete(admin, "user123")

    def test_cannot_delete_self(self, users, admin):
        with pytest.raises(ValidationError):
            users.delete(admin, "admin123")

    def test_update_own_profile(self, users, regular, demo_store):
        updated = users.update_profile(regular, " Robin ")
        assert updated.name == "Robin"
        assert updated.role == "user"
        assert demo_store.get(queries.USERS, "user123")["email"] == "user@example.com"

    def test_profile_name_required(self, users, regular):
        with pytest.raises(ValidationError):
            users.update_profile(regular, "")


@pytest.mark.parametrize("term,expected", [
    ("", ["admin123", "user123"]),
    ("ADMIN", ["admin123"]),
    ("regular", ["user123"]),
    ("@example.com", ["admin123", "user123"]),
    ("nobody", []),
])
def test_filter_users(demo_store, term, expected):
    users = UserRepository(demo_store).list()
    assert [u.id for u in filter_users(users, term)] == expected
