"""
Shared value types for Ref Tracking.

Responsibilities:
    - ClickRecord: one row of the click-log table
    - AggregationRow: one (r_param, clicks) group of the stats query
    - MigrationResult / InsertResult: explicit outcomes returned by storage
      adapters, so callers branch on results instead of catching driver errors

Column limits (REFERRER_MAX, USER_AGENT_MAX, R_PARAM_MAX) are counted in
characters (Python code points), which matches Postgres VARCHAR(n).
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

REFERRER_MAX = 200
USER_AGENT_MAX = 255
R_PARAM_MAX = 255

R_PARAM_DEFAULT = "direct"
R_PARAM_COLUMN = "r_param"
R_PARAM_INDEX = "idx_r_param"


def truncate(value: Optional[str], limit: int) -> str:
    """Return at most `limit` leading characters of `value` ("" for None)."""
    if value is None:
        return ""
    return value[:limit]


@dataclass(frozen=True)
class ClickRecord:
    """
    A single redirect click.

    `r_param` is None for clicks logged by the host's default logger; the
    storage layer then omits the column so the schema default applies.
    """

    short_url: str
    referrer: str
    user_agent: str
    ip_address: str
    country_code: str
    r_param: Optional[str] = None
    click_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class AggregationRow:
    r_param: str
    clicks: int

    def as_dict(self) -> Dict[str, Any]:
        return {"r_param": self.r_param, "clicks": self.clicks}


class MigrationStatus(str, Enum):
    OK = "ok"
    ALREADY_EXISTS = "already_exists"
    MISSING = "missing"
    FAILED = "failed"


@dataclass(frozen=True)
class MigrationResult:
    """Outcome of one DDL step (add/drop column, create/drop index)."""

    step: str
    status: MigrationStatus
    reason: str = ""

    @classmethod
    def ok(cls, step: str) -> "MigrationResult":
        return cls(step, MigrationStatus.OK)

    @classmethod
    def exists(cls, step: str, reason: str = "") -> "MigrationResult":
        return cls(step, MigrationStatus.ALREADY_EXISTS, reason)

    @classmethod
    def missing(cls, step: str, reason: str = "") -> "MigrationResult":
        return cls(step, MigrationStatus.MISSING, reason)

    @classmethod
    def failure(cls, step: str, reason: str) -> "MigrationResult":
        return cls(step, MigrationStatus.FAILED, reason)

    @property
    def is_failure(self) -> bool:
        return self.status is MigrationStatus.FAILED


@dataclass(frozen=True)
class InsertResult:
    """Outcome of a click insert: rows affected, or the reason it failed."""

    rows: int = 0
    error: Optional[str] = None

    @classmethod
    def ok(cls, rows: int) -> "InsertResult":
        return cls(rows=rows)

    @classmethod
    def fail(cls, reason: str) -> "InsertResult":
        return cls(rows=0, error=reason)

    @property
    def failed(self) -> bool:
        return self.error is not None
