"""
Boundary tests for the host app.

Covers:
    - module-level `app` imports and serves health with default settings
    - read-path storage failures surface as HTTP 500 (not swallowed)
    - write-path storage failures never break the redirect
    - a repeated `action` field is rejected cleanly
"""

import pytest
from fastapi.testclient import TestClient

from main import app, create_app
from ref_tracking.models import InsertResult
from ref_tracking.storage.base import StorageError
from ref_tracking.storage.storage import ClickStore


def test_default_app_health():
    with TestClient(app) as c:
        assert c.get("/health").json() == {"status": "ok"}
        assert c.get("/anything", follow_redirects=False).status_code == 404


def test_read_path_error_is_500(links, geo):
    # No lifespan: the r_param column was never added, so the query fails.
    c = TestClient(create_app(store=ClickStore(), links=links, geo=geo), raise_server_exceptions=False)
    resp = c.get("/api", params={"action": "ref-stats", "shorturl": "abc"})
    assert resp.status_code == 500


def test_read_path_error_reaches_host_error_path(links, geo):
    c = TestClient(create_app(store=ClickStore(), links=links, geo=geo))
    with pytest.raises(StorageError):
        c.get("/api", params={"action": "ref-stats", "shorturl": "abc"})


class _FailingInsertStore(ClickStore):
    def insert_click(self, record):
        self.attempts = getattr(self, "attempts", 0) + 1
        return InsertResult.fail("disk full")


def test_write_path_failure_still_redirects(links, geo):
    store = _FailingInsertStore()
    with TestClient(create_app(store=store, links=links, geo=geo, log_redirects=True)) as c:
        resp = c.get("/abc?r=fb", follow_redirects=False)
        assert resp.status_code == 302
    # Plugin handled the click; the host did not retry with its own insert.
    assert store.attempts == 1
    assert store.rows == []


def test_repeated_action_rejected(client):
    resp = client.get("/api?action=ref-stats&action=ref-stats&shorturl=abc")
    assert resp.status_code == 400
