"""
Stats API endpoint: the `ref-stats` action.

Request fields:
    shorturl  (required)  keyword to report on
    page      (optional)  1-based page, default 1
    per_page  (optional)  default 10, clamped to [1, 100]
    r-params  (optional)  list or comma-separated allow-list of r_param values

The only error handled here is a missing shorturl (statusCode 400, no query
runs). Storage failures raised by the aggregator propagate to the host.
"""

from typing import Any, Dict, Mapping

from ..analytics.aggregation import DEFAULT_PAGE, DEFAULT_PER_PAGE, RefStatsAggregator
from .params import parse_int, parse_r_params
from .schemas import ErrorResponse, Pagination, RefStatsResponse, RefStatsRow

ACTION = "ref-stats"
MISSING_SHORTURL = "Missing shorturl parameter"


class RefStatsEndpoint:
    def __init__(self, aggregator: RefStatsAggregator):
        self.aggregator = aggregator

    def handle(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Run the ref-stats action for already-collected request fields.

        Returns:
            dict: RefStatsResponse or ErrorResponse, dumped; `statusCode`
                  doubles as the HTTP status.
        """
        short_url = params.get("shorturl")
        if short_url is None:
            return ErrorResponse(statusCode=400, message=MISSING_SHORTURL).model_dump()

        result = self.aggregator.aggregate(
            str(short_url),
            r_param_filter=parse_r_params(params.get("r-params")),
            page=parse_int(params.get("page"), DEFAULT_PAGE),
            per_page=parse_int(params.get("per_page"), DEFAULT_PER_PAGE),
        )
        return RefStatsResponse(
            data=[RefStatsRow(r_param=row.r_param, clicks=row.clicks) for row in result.rows],
            pagination=Pagination(
                current_page=result.page,
                per_page=result.per_page,
                total=result.total,
                total_pages=result.total_pages,
            ),
        ).model_dump()
