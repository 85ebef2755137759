"""
Global pytest fixtures for the Ref Tracking test suite.

Responsibilities:
    - Provide an in-memory click store with and without the r_param column
    - Provide a deterministic country resolver (no GeoIP database needed)
    - Provide the plugin and a TestClient built through the app factory

Why an app factory?
    `create_app()` takes the store, link registry and geo resolver as
    arguments, so every test gets isolated state and can inspect the rows
    its requests produced.

LLM Prompt Example:
    "Show how to structure pytest fixtures so a plugin's write path, read
    path and host integration can be tested without a database."
"""

from typing import Dict, Optional

import pytest
from fastapi.testclient import TestClient

from main import create_app
from ref_tracking.plugin import RefTrackingPlugin
from ref_tracking.recorder.recorder import ClickRequest
from ref_tracking.storage.storage import ClickStore


class FakeGeo:
    """Country resolver backed by a dict; unknown IPs resolve to ""."""

    def __init__(self, table: Optional[Dict[str, str]] = None):
        self.table = table or {"203.0.113.7": "FR"}
        self.calls = []

    def country_code(self, ip):
        self.calls.append(ip)
        return self.table.get(ip, "")


@pytest.fixture
def geo() -> FakeGeo:
    return FakeGeo()


@pytest.fixture
def bare_store() -> ClickStore:
    """Click log as the host ships it: no r_param column yet."""
    return ClickStore()


@pytest.fixture
def store() -> ClickStore:
    """Click log after the plugin's migration ran."""
    s = ClickStore()
    s.add_ref_column()
    s.add_ref_index()
    return s


@pytest.fixture
def plugin(store, geo) -> RefTrackingPlugin:
    return RefTrackingPlugin(store, geo=geo)


@pytest.fixture
def click_request():
    """Factory for ClickRequest objects with sensible defaults."""

    def _make(query=None, **kwargs) -> ClickRequest:
        kwargs.setdefault("ip_address", "203.0.113.7")
        kwargs.setdefault("referrer", "https://news.example.org/post")
        kwargs.setdefault("user_agent", "Mozilla/5.0")
        return ClickRequest(query=query or {}, **kwargs)

    return _make


@pytest.fixture
def links() -> Dict[str, str]:
    return {"abc": "https://example.com/landing", "promo": "https://example.com/promo"}


@pytest.fixture
def client(bare_store, links, geo):
    """
    TestClient over a fresh app whose store starts without r_param.

    Entering the client runs the lifespan, i.e. the plugin's enable hook.
    """
    app = create_app(store=bare_store, links=links, geo=geo, log_redirects=True)
    with TestClient(app) as c:
        yield c
