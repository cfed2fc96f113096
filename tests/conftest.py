"""
tests/conftest.py -- Shared test fixtures for the classifieds test suite.

This module provides:
  - make_settings(): Settings with a fixed secret, cheap bcrypt, and an
    isolated named in-memory database
  - account_service / listing_service / token_issuer: unit-level components on
    plain sqlite:///:memory: stores
  - api_client: TestClient over the real app with one pre-registered account
  - register: factory fixture that registers an account through the API

Design: Named shared-memory SQLite URIs (not plain :memory:) are required for
the API fixtures because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to each
worker thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

bcrypt_rounds=4 is the lowest cost bcrypt accepts; it keeps the suite fast
without changing hashing behaviour.
"""

from __future__ import annotations

from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from auth.models import Account
from auth.service import AccountService
from auth.store import AccountStore
from auth.tokens import TokenIssuer
from core.config import Settings
from listings.service import ListingService
from listings.store import ListingStore

TEST_SECRET = "classifieds-test-secret-0123456789abcdef"
TEST_PASSWORD = "correct-horse-battery"


def make_settings(db_name: str, **overrides) -> Settings:
    """Build Settings for an isolated named shared-memory database."""
    values = {
        "secret_key": TEST_SECRET,
        "database_url": f"sqlite:///file:{db_name}?mode=memory&cache=shared&uri=true",
        "bcrypt_rounds": 4,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def token_issuer() -> TokenIssuer:
    return TokenIssuer(TEST_SECRET, expire_seconds=86400)


@pytest.fixture
def account_service() -> Generator[AccountService, None, None]:
    store = AccountStore("sqlite:///:memory:")
    yield AccountService(store, bcrypt_rounds=4)
    store.close()


@pytest.fixture
def listing_service() -> Generator[ListingService, None, None]:
    store = ListingStore("sqlite:///:memory:")
    yield ListingService(store, default_page_size=20, max_page_size=100)
    store.close()


@pytest.fixture
def alice() -> Account:
    return Account(id=1, name="Alice", surname="Smith", email="alice@example.com", phone="555-0101", hashed_password="x")


@pytest.fixture
def bob() -> Account:
    return Account(id=2, name="Bob", surname="Jones", email="bob@example.com", phone="555-0102", hashed_password="x")


# ---------------------------------------------------------------------------
# API fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, str, int], None, None]:
    """Yield (client, token, account_id) for API integration tests.

    The TestClient runs the real lifespan against an in-memory database named
    after the test module, so modules never see each other's rows. An account
    (owner@example.com / TEST_PASSWORD) is registered through the API before
    the first test runs.
    """
    db_name = "test_" + request.module.__name__.replace(".", "_")
    app = create_app(make_settings(db_name))

    with TestClient(app, raise_server_exceptions=True) as client:
        resp = client.post(
            "/api/v1/auth/register",
            json={
                "name": "Owner",
                "surname": "Account",
                "email": "owner@example.com",
                "phone": "555-0100",
                "password": TEST_PASSWORD,
            },
        )
        assert resp.status_code == 201, resp.text
        data = resp.json()
        yield client, data["access_token"], data["account"]["id"]


@pytest.fixture
def register(api_client) -> Callable[..., tuple[str, int]]:
    """Return a helper that registers an account and yields (token, account_id)."""
    client, _token, _uid = api_client

    def _register(email: str, password: str = TEST_PASSWORD, **fields) -> tuple[str, int]:
        body = {"name": "Test", "surname": "User", "email": email, "phone": "555-0199", "password": password}
        body.update(fields)
        resp = client.post("/api/v1/auth/register", json=body)
        assert resp.status_code == 201, resp.text
        data = resp.json()
        return data["access_token"], data["account"]["id"]

    return _register
