"""
Unit tests for RefStatsEndpoint.handle.

Covers:
    - missing shorturl -> statusCode 400 and no query executed
    - success payload shape and pagination block
    - r-params as list or comma string
    - page/per_page parsing and clamping
    - storage errors propagate
"""

import pytest

from ref_tracking.analytics.aggregation import RefStatsAggregator
from ref_tracking.api.stats_endpoint import RefStatsEndpoint
from ref_tracking.models import ClickRecord
from ref_tracking.storage.base import StorageError


def _seed(store, short_url, *r_params):
    for r in r_params:
        store.insert_click(
            ClickRecord(short_url=short_url, referrer="direct", user_agent="-",
                        ip_address="", country_code="", r_param=r)
        )


class _SpyAggregator:
    def __init__(self):
        self.calls = 0

    def aggregate(self, *args, **kwargs):
        self.calls += 1
        raise AssertionError("must not query")


@pytest.fixture
def endpoint(store):
    _seed(store, "abc", "fb", "fb", "tw", "ig", "ig", "ig")
    return RefStatsEndpoint(RefStatsAggregator(store))


def test_missing_shorturl_returns_400_without_query():
    spy = _SpyAggregator()
    result = RefStatsEndpoint(spy).handle({"page": "2"})
    assert result == {"statusCode": 400, "message": "Missing shorturl parameter"}
    assert spy.calls == 0


def test_success_payload(endpoint):
    result = endpoint.handle({"shorturl": "abc"})
    assert result["status"] == "success"
    assert result["statusCode"] == 200
    assert result["data"] == [
        {"r_param": "ig", "clicks": 3},
        {"r_param": "fb", "clicks": 2},
        {"r_param": "tw", "clicks": 1},
    ]
    assert result["pagination"] == {"current_page": 1, "per_page": 10, "total": 3, "total_pages": 1}


def test_r_params_list_and_string_agree(endpoint):
    as_list = endpoint.handle({"shorturl": "abc", "r-params": ["fb", "tw"]})
    as_string = endpoint.handle({"shorturl": "abc", "r-params": "fb,tw"})
    assert as_list == as_string
    assert [row["r_param"] for row in as_list["data"]] == ["fb", "tw"]
    assert as_list["pagination"]["total"] == 2


def test_invalid_r_params_means_no_filter(endpoint):
    result = endpoint.handle({"shorturl": "abc", "r-params": 12})
    assert result["pagination"]["total"] == 3


def test_pagination_fields_parsed(endpoint):
    result = endpoint.handle({"shorturl": "abc", "page": "2", "per_page": "2"})
    assert result["data"] == [{"r_param": "tw", "clicks": 1}]
    assert result["pagination"] == {"current_page": 2, "per_page": 2, "total": 3, "total_pages": 2}


def test_per_page_capped(endpoint):
    result = endpoint.handle({"shorturl": "abc", "per_page": "1000"})
    assert result["pagination"]["per_page"] == 100


def test_non_numeric_page_falls_back_to_defaults(endpoint):
    result = endpoint.handle({"shorturl": "abc", "page": "x", "per_page": "y"})
    assert result["pagination"]["current_page"] == 1
    assert result["pagination"]["per_page"] == 10


def test_unknown_shorturl_is_empty_success(endpoint):
    result = endpoint.handle({"shorturl": "zzz"})
    assert result["statusCode"] == 200
    assert result["data"] == []
    assert result["pagination"]["total_pages"] == 0


def test_storage_error_propagates(bare_store):
    with pytest.raises(StorageError):
        RefStatsEndpoint(RefStatsAggregator(bare_store)).handle({"shorturl": "abc"})
