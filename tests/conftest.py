"""Shared fixtures: an in-memory SQLite record store and app clients built on it."""

import pytest
from fastapi.testclient import TestClient

from app import create_app
from helpers import make_settings, make_store


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def store():
    s = make_store()
    s.start()
    yield s
    s.stop()


@pytest.fixture
def client():
    app = create_app(make_settings(), store=make_store())
    with TestClient(app) as c:
        yield c
