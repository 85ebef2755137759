import json
import re

from ref_tracking.analytics.aggregation import RefStatsAggregator
from ref_tracking.models import ClickRecord
from ref_tracking.report.renderer import RefStatsTabRenderer


def _seed(store, short_url, *r_params):
    for r in r_params:
        store.insert_click(
            ClickRecord(short_url=short_url, referrer="direct", user_agent="-",
                        ip_address="", country_code="", r_param=r)
        )


def _rows_json(html):
    match = re.search(r"var rows = (.*);", html)
    assert match, html
    return json.loads(match.group(1))


def test_render_embeds_full_breakdown(store):
    for i in range(15):
        _seed(store, "abc", f"camp{i}")
    _seed(store, "abc", "camp3")
    html = RefStatsTabRenderer(RefStatsAggregator(store)).render("abc")

    rows = _rows_json(html)
    assert len(rows) == 15  # not paginated
    assert rows[0] == {"r_param": "camp3", "clicks": 2}


def test_render_guards_missing_tab_container(store):
    html = RefStatsTabRenderer(RefStatsAggregator(store)).render("abc")
    assert 'document.querySelector("#tabs > .wrap_unfloat > ul")' in html
    assert "if (!tabsContainer)" in html
    assert '<link rel="stylesheet" href="/assets/style.css">' in html
    assert _rows_json(html) == []


def test_render_escapes_stored_values(store):
    _seed(store, "abc", "</script><script>alert(1)</script>")
    html = RefStatsTabRenderer(RefStatsAggregator(store), css_url="/static/ref.css").render("abc")
    assert "</script><script>alert(1)" not in html
    assert _rows_json(html)[0]["r_param"] == "</script><script>alert(1)</script>"
    assert 'href="/static/ref.css"' in html


def test_render_label(store):
    html = RefStatsTabRenderer(RefStatsAggregator(store)).render("abc")
    assert 'var label = "Ref Stats";' in html
