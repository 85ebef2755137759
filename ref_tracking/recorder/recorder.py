"""
Redirect-click recorder for Ref Tracking.

Responsibilities:
    - Decide, per redirect click, whether this plugin or the host logs it
    - Build a ClickRecord (sanitized keyword, truncated fields, country code)
    - Insert the augmented row once, best-effort

Decision table (`on_redirect_log`):
    r absent                          -> DEFER     host logs as usual
    r present, host logging disabled  -> SUPPRESS  nobody logs
    r present, host logging enabled   -> HANDLED   we logged; host must skip

Exactly one of the recorder or the host's default logger writes a row for
a click. A failed insert is still HANDLED (with 0 rows) so the host never
writes a second row; the click is under-counted instead.

LLM Prompt Example:
    "Show how an explicit decision type (defer / suppress / handled) makes a
    logging interception hook's mutual-exclusion contract testable."
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional, Protocol

from ..models import (
    R_PARAM_MAX,
    REFERRER_MAX,
    USER_AGENT_MAX,
    ClickRecord,
    InsertResult,
    truncate,
)
from ..storage.base import BaseClickStore

log = logging.getLogger("ref_tracking.recorder")

KEYWORD_PATTERN = re.compile(r"[^0-9A-Za-z_-]")

DEFAULT_REFERRER = "direct"
DEFAULT_USER_AGENT = "-"


class CountryResolver(Protocol):
    def country_code(self, ip: Optional[str]) -> str: ...


def sanitize_keyword(keyword: str) -> str:
    """Strip every character outside the short-url charset [0-9A-Za-z_-]."""
    return KEYWORD_PATTERN.sub("", keyword or "")


@dataclass(frozen=True)
class ClickRequest:
    """The parts of an inbound redirect request the click log needs."""

    query: Mapping[str, str] = field(default_factory=dict)
    ip_address: str = ""
    referrer: str = DEFAULT_REFERRER
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_request(cls, request) -> "ClickRequest":
        """Build from a Starlette/FastAPI request."""
        forwarded = request.headers.get("x-forwarded-for", "")
        ip = forwarded.split(",")[0].strip() if forwarded else ""
        if not ip and request.client is not None:
            ip = request.client.host
        return cls(
            query=dict(request.query_params),
            ip_address=ip,
            referrer=request.headers.get("referer") or DEFAULT_REFERRER,
            user_agent=request.headers.get("user-agent") or DEFAULT_USER_AGENT,
        )


def build_click_record(
    keyword: str,
    request: ClickRequest,
    geo: Optional[CountryResolver] = None,
    r_param: Optional[str] = None,
) -> ClickRecord:
    """Shared row builder for the recorder and the host's default logger."""
    return ClickRecord(
        short_url=sanitize_keyword(keyword),
        referrer=truncate(request.referrer, REFERRER_MAX),
        user_agent=truncate(request.user_agent, USER_AGENT_MAX),
        ip_address=request.ip_address,
        country_code=geo.country_code(request.ip_address) if geo is not None else "",
        r_param=r_param,
    )


class DecisionKind(str, Enum):
    DEFER = "defer"
    SUPPRESS = "suppress"
    HANDLED = "handled"


@dataclass(frozen=True)
class RecorderDecision:
    kind: DecisionKind
    rows: int = 0

    @classmethod
    def defer(cls) -> "RecorderDecision":
        return cls(DecisionKind.DEFER)

    @classmethod
    def suppress(cls) -> "RecorderDecision":
        return cls(DecisionKind.SUPPRESS)

    @classmethod
    def handled(cls, rows: int) -> "RecorderDecision":
        return cls(DecisionKind.HANDLED, rows)

    @property
    def skip_default_log(self) -> bool:
        """True when the host must not run its own click insert."""
        return self.kind is not DecisionKind.DEFER


class ClickRecorder:
    def __init__(
        self,
        store: BaseClickStore,
        geo: Optional[CountryResolver] = None,
        query_param: str = "r",
    ):
        self.store = store
        self.geo = geo
        self.query_param = query_param

    def referral_tag(self, request: ClickRequest) -> Optional[str]:
        """The truncated referral tag, or None when absent or empty."""
        raw = request.query.get(self.query_param)
        if raw is None:
            return None
        return truncate(raw, R_PARAM_MAX) or None

    def on_redirect_log(
        self, default_would_log: bool, short_url_keyword: str, request: ClickRequest
    ) -> RecorderDecision:
        r_param = self.referral_tag(request)
        if r_param is None:
            return RecorderDecision.defer()

        if not default_would_log:
            return RecorderDecision.suppress()

        record = build_click_record(short_url_keyword, request, self.geo, r_param=r_param)
        result = self.store.insert_click(record)
        if result.failed:
            log.debug("Click for %s not recorded: %s", record.short_url, result.error)
        return RecorderDecision.handled(result.rows)


class DefaultClickLogger:
    """
    The host's own click logger: same row, without r_param.

    Leaving r_param out lets the column default ("direct") apply while the
    column exists, and keeps inserts working before the migration ran.
    """

    def __init__(self, store: BaseClickStore, geo: Optional[CountryResolver] = None):
        self.store = store
        self.geo = geo

    def log_redirect(self, keyword: str, request: ClickRequest) -> InsertResult:
        result = self.store.insert_click(build_click_record(keyword, request, self.geo))
        if result.failed:
            log.debug("Default click log failed for %s: %s", keyword, result.error)
        return result
