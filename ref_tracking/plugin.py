"""
RefTrackingPlugin – the surface the host registers.

Hooks:
    on_enable()                         activation: ensure_schema()
    on_disable()                        deactivation: remove_schema(drop_on_disable)
    on_before_log(default, kw, req)     per click: RecorderDecision
    on_render_detail_page(short_url)    per detail page: HTML snippet
    api_actions()                       action name -> handler for API dispatch

All components share the one injected store.

LLM Prompt Example:
    "Explain how a small explicit plugin interface replaces string-keyed
    hook registration while keeping the same integration points."
"""

from typing import Any, Callable, Dict, Mapping, Optional

from .analytics.aggregation import MAX_PER_PAGE, RefStatsAggregator
from .api.stats_endpoint import ACTION, RefStatsEndpoint
from .recorder.recorder import ClickRecorder, ClickRequest, CountryResolver, RecorderDecision
from .report.renderer import RefStatsTabRenderer
from .schema.schema_manager import SchemaManager, SchemaReport
from .storage.base import BaseClickStore

ApiHandler = Callable[[Mapping[str, Any]], Dict[str, Any]]


class RefTrackingPlugin:
    def __init__(
        self,
        store: BaseClickStore,
        geo: Optional[CountryResolver] = None,
        query_param: str = "r",
        drop_on_disable: bool = True,
        max_per_page: int = MAX_PER_PAGE,
        css_url: str = "/assets/style.css",
    ):
        self.store = store
        self.drop_on_disable = drop_on_disable
        self.schema = SchemaManager(store)
        self.recorder = ClickRecorder(store, geo=geo, query_param=query_param)
        self.aggregator = RefStatsAggregator(store, max_per_page=max_per_page)
        self.endpoint = RefStatsEndpoint(self.aggregator)
        self.renderer = RefStatsTabRenderer(self.aggregator, css_url=css_url)

    def on_enable(self) -> SchemaReport:
        return self.schema.ensure_schema()

    def on_disable(self) -> SchemaReport:
        return self.schema.remove_schema(self.drop_on_disable)

    def on_before_log(
        self, default_would_log: bool, keyword: str, request: ClickRequest
    ) -> RecorderDecision:
        return self.recorder.on_redirect_log(default_would_log, keyword, request)

    def on_render_detail_page(self, short_url: str) -> str:
        return self.renderer.render(short_url)

    def api_actions(self) -> Dict[str, ApiHandler]:
        return {ACTION: self.endpoint.handle}
