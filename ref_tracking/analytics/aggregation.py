"""
Aggregation query engine for Ref Tracking.

Responsibilities:
    - Group a short url's clicks by r_param, highest count first
    - Restrict to an allow-list of r_param values (exact, case-sensitive)
    - Paginate the groups and report total groups / total pages

Pagination:
    per_page is clamped to [1, max_per_page] and page to >= 1 before use.
    offset = (page - 1) * per_page
    total_pages = ceil(total / per_page), 0 when there are no groups.

Tie order between groups with equal counts is whatever the store returns;
callers must not depend on it.

Storage errors are not caught here.

LLM Prompt Example:
    "Show how to compute paginated GROUP BY results together with a distinct
    count so that total_pages stays consistent with the page contents."
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from ..models import AggregationRow
from ..storage.base import BaseClickStore

DEFAULT_PAGE = 1
DEFAULT_PER_PAGE = 10
MAX_PER_PAGE = 100


def clamp_per_page(per_page: int, cap: int = MAX_PER_PAGE) -> int:
    return max(1, min(per_page, cap))


def clamp_page(page: int) -> int:
    return max(1, page)


def total_pages(total: int, per_page: int) -> int:
    if total <= 0:
        return 0
    return math.ceil(total / per_page)


@dataclass(frozen=True)
class AggregationPage:
    rows: List[AggregationRow]
    total: int
    total_pages: int
    page: int
    per_page: int

    def as_dicts(self) -> List[Dict[str, Any]]:
        return [row.as_dict() for row in self.rows]


class RefStatsAggregator:
    def __init__(self, store: BaseClickStore, max_per_page: int = MAX_PER_PAGE):
        self.store = store
        self.max_per_page = clamp_per_page(max_per_page)

    def aggregate(
        self,
        short_url: str,
        r_param_filter: Optional[Iterable[str]] = None,
        page: int = DEFAULT_PAGE,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> AggregationPage:
        """
        Grouped click counts for one short url.

        Args:
            short_url (str): Keyword to report on.
            r_param_filter (Optional[Iterable[str]]): Allowed r_param values;
                None or empty means all values.
            page (int): 1-based page number.
            per_page (int): Groups per page, clamped to [1, max_per_page].

        Returns:
            AggregationPage: rows for the page plus total groups and pages.
        """
        r_params: FrozenSet[str] = frozenset(r_param_filter or ())
        page = clamp_page(page)
        per_page = clamp_per_page(per_page, self.max_per_page)
        offset = (page - 1) * per_page

        rows = self.store.group_by_ref(short_url, r_params, limit=per_page, offset=offset)
        total = self.store.count_refs(short_url, r_params)
        return AggregationPage(
            rows=rows,
            total=total,
            total_pages=total_pages(total, per_page),
            page=page,
            per_page=per_page,
        )

    def full_breakdown(self, short_url: str) -> List[AggregationRow]:
        """Every r_param group for `short_url`; no filter, no pagination."""
        return self.store.group_by_ref(short_url)
