"""Shared test fixtures for the script archive tests."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from api.services.rate_limiter import RateLimiter
from scriptsnip.db import ScriptStore

TITLES = ["Beta", "Alpha", "Gamma", "Delta", "Epsilon"]


def make_script_data(title: str | None = "Test Script", character: str = "Hero", dialogue: str = "Hello there"):
    return {
        "title": title,
        "characters": [character],
        "lines": [{"character": character, "dialogue": dialogue}],
    }


class UnreachableStore(ScriptStore):
    """Store that fails the test if any query is attempted."""

    def __init__(self):
        super().__init__(db_path="/nonexistent/unreachable.sqlite")
        self.calls = 0

    def _fail(self, *args, **kwargs):
        self.calls += 1
        raise AssertionError("store should not be queried")

    connect = _fail
    read_transaction = _fail
    count = _fail


@pytest.fixture
def store(tmp_path) -> ScriptStore:
    store = ScriptStore(tmp_path / "scripts.sqlite")
    store.init_database()
    return store


@pytest.fixture
def seeded_store(store) -> ScriptStore:
    """Store holding five snippets titled Beta, Alpha, Gamma, Delta, Epsilon (in insert order)."""
    for title in TITLES:
        store.create(
            title=title,
            characters=[f"{title} Lead", "Narrator"],
            lines=[
                {"character": f"{title} Lead", "dialogue": f"My name is {title}."},
                {"character": "Narrator", "dialogue": "And so it began."},
            ],
        )
    return store


@pytest.fixture
def app(store):
    return create_app(store=store, create_limiter=RateLimiter(max_requests=20, window_seconds=3600))


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
