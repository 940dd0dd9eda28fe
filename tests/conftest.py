"""
tests/conftest.py -- Shared test fixtures for Funko store integration tests.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for users + catalog
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient plus an admin token and a user token

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

DEBUG must be set before any core/auth import so get_settings() generates a
JWT_KEY in dev mode instead of leaving it empty. Rate limiting is switched
off so repeated sign-ins across tests are not throttled.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from typing import NamedTuple

# CRITICAL: set before any project import; get_settings() is cached.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app, init_state
from auth.models import Role, User
from auth.passwords import hash_password
from auth.store import UserStore
from cache.store import MemoryCache
from catalog.store import CatalogStore
from core.config import Settings, get_settings

# Low bcrypt cost for fixture users; production uses the default of 11.
FAST_ROUNDS = 4

ADMIN_PASSWORD = "adminpass123"
USER_PASSWORD = "userpass123"


class ApiClient(NamedTuple):
    client: TestClient
    admin_token: str
    user_token: str


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def memory_url(name: str) -> str:
    return f"sqlite:///file:{name}?mode=memory&cache=shared&uri=true"


def _make_test_stores(db_suffix: str) -> tuple[UserStore, CatalogStore]:
    """Create isolated named shared-memory SQLite stores.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    user_store = UserStore(db_url=memory_url(f"test_users_{db_suffix}"))
    catalog_store = CatalogStore(db_url=memory_url(f"test_catalog_{db_suffix}"))
    return user_store, catalog_store


def _patch_lifespan(user_store: UserStore, catalog_store: CatalogStore):
    """Return an async context manager that replaces the real lifespan.

    Runs the real init_state() with the test stores and an in-process cache,
    so routes see the same component graph as production.

    The purge_task is a long-sleeping coroutine (a real asyncio.Task is
    required; MagicMock would fail on .cancel()).
    """

    @asynccontextmanager
    async def test_lifespan(app):
        init_state(app, get_settings(), user_store=user_store, catalog_store=catalog_store, cache=MemoryCache())
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()
        app.state.outbox.stop()

    return test_lifespan


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[ApiClient, None, None]:
    """Yield (client, admin_token, user_token) for API integration tests.

    Seeds "testadmin" (ADMIN) and "testuser" (USER) before the client starts;
    tokens are issued by the app's own TokenService once lifespan has run.
    """
    suffix = request.module.__name__.rsplit(".", 1)[-1]
    user_store, catalog_store = _make_test_stores(suffix)

    admin = user_store.save(
        User(
            username="testadmin",
            email="admin@funkostore.test",
            hashed_password=hash_password(ADMIN_PASSWORD, rounds=FAST_ROUNDS),
            role=Role.ADMIN,
        )
    )
    user = user_store.save(
        User(
            username="testuser",
            email="user@funkostore.test",
            hashed_password=hash_password(USER_PASSWORD, rounds=FAST_ROUNDS),
        )
    )

    app.router.lifespan_context = _patch_lifespan(user_store, catalog_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        tokens = app.state.token_service
        yield ApiClient(client, tokens.issue(admin), tokens.issue(user))

    user_store.close()
    catalog_store.close()


# ---------------------------------------------------------------------------
# Unit-test fixtures -- fresh stores and explicit settings per test
# ---------------------------------------------------------------------------

TEST_KEY = "unit-test-signing-key-0123456789abcdef"


@pytest.fixture
def settings() -> Settings:
    """Settings independent of the process environment and any .env file."""
    return Settings(_env_file=None, debug=False, jwt_key=TEST_KEY)


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore(db_url=memory_url(f"users_{uuid.uuid4().hex}"))
    yield store
    store.close()


@pytest.fixture
def catalog_store() -> Generator[CatalogStore, None, None]:
    store = CatalogStore(db_url=memory_url(f"catalog_{uuid.uuid4().hex}"))
    yield store
    store.close()
