"""
Report view renderer: the "Ref Stats" tab on a link's detail page.

The host calls `render(short_url)` while building the page. The returned
snippet links the stylesheet and carries a script that appends a tab and a
two-column (r_param, clicks) table into `#tabs > .wrap_unfloat > ul`. When
that container is absent the script returns without touching the page.

Row data is embedded as JSON and inserted with textContent, so stored
r_param values are never interpreted as markup.
"""

from pathlib import Path

from fastapi.templating import Jinja2Templates

from ..analytics.aggregation import RefStatsAggregator

TEMPLATES_DIR = Path(__file__).parent / "templates"
ASSETS_DIR = Path(__file__).parent / "assets"

TAB_LABEL = "Ref Stats"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


class RefStatsTabRenderer:
    def __init__(self, aggregator: RefStatsAggregator, css_url: str = "/assets/style.css"):
        self.aggregator = aggregator
        self.css_url = css_url

    def render(self, short_url: str) -> str:
        rows = [row.as_dict() for row in self.aggregator.full_breakdown(short_url)]
        return templates.get_template("ref_stats_tab.html").render(
            css_url=self.css_url,
            label=TAB_LABEL,
            rows=rows,
        )
