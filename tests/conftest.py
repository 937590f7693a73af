"""Pytest configuration and fixtures for test suite."""

import os
import sys
from pathlib import Path
from typing import Dict

import pytest

# Set test environment BEFORE any other imports
os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ.setdefault("APP_BCRYPT_ROUNDS", "4")
os.environ.setdefault("APP_STORAGE_BACKEND", "memory")

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))


TEST_PASSWORD = "password123"
OWNER_USERNAME = "owner"
OWNER_PASSWORD = "test"


@pytest.fixture(autouse=True)
def restore_root_logger():
    """The app lifespan reconfigures the root logger; undo it after each test."""
    import logging

    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


# =============================================================================
# STORAGE AND SERVICES
# =============================================================================

@pytest.fixture
def storage():
    """Fresh in-memory storage installed as the active backend."""
    from database import MemStorage, reset_storage, set_storage

    mem = MemStorage()
    set_storage(mem)
    yield mem
    reset_storage()


@pytest.fixture
def user_service(storage):
    from admin_panel.services import UserService

    return UserService(storage)


@pytest.fixture
def complaint_service(storage):
    from admin_panel.support import ComplaintService

    return ComplaintService(storage)


@pytest.fixture
def make_user(user_service):
    """Factory creating a user with the shared test password."""
    from rbac import UserRole

    def _make(username: str, role: UserRole = UserRole.USER, **kwargs):
        return user_service.create_user(username, TEST_PASSWORD, role=role, **kwargs)

    return _make


@pytest.fixture
def users(make_user):
    """One account per role, plus a second regular user."""
    from rbac import UserRole

    return {
        "owner": make_user("boss", UserRole.OWNER),
        "admin": make_user("admin", UserRole.ADMIN),
        "moderator": make_user("mod", UserRole.MODERATOR),
        "support": make_user("helper", UserRole.SUPPORT),
        "user": make_user("alice"),
        "other": make_user("bob"),
    }


# =============================================================================
# HTTP CLIENT
# =============================================================================

@pytest.fixture
def manager():
    """Fresh chat connection manager."""
    from realtime import ConnectionManager

    return ConnectionManager()


@pytest.fixture
def app(storage, manager):
    from realtime import get_connection_manager
    from web.app import create_app

    application = create_app()
    application.dependency_overrides[get_connection_manager] = lambda: manager
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """TestClient with the lifespan running (seeds the owner account)."""
    from fastapi.testclient import TestClient

    with TestClient(app) as test_client:
        yield test_client


def login(client, username: str, password: str = TEST_PASSWORD) -> Dict[str, str]:
    """Log in and return the Authorization header."""
    response = client.post("/api/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def login_as(client):
    """Log in through the API and return the Authorization header."""
    def _login(username: str, password: str = TEST_PASSWORD) -> Dict[str, str]:
        return login(client, username, password)

    return _login


@pytest.fixture
def auth(client, users):
    """Authorization headers keyed by role name."""
    headers = {name: login(client, user.username) for name, user in users.items()}
    headers["seed_owner"] = login(client, OWNER_USERNAME, OWNER_PASSWORD)
    return headers


@pytest.fixture
def tokens(auth):
    """Raw access tokens keyed by role name."""
    return {name: h["Authorization"].split(" ", 1)[1] for name, h in auth.items()}
