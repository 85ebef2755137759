"""
Storage module for Ref Tracking (in-memory implementation).

Responsibilities:
    - Hold click-log rows as dictionaries keyed by the table's column names
    - Emulate the r_param column/index lifecycle (add, drop, default value)
    - Provide the grouped read queries used by the aggregator

Design:
    - This is an in-memory reference implementation of BaseClickStore.
    - It mirrors the relational behavior the Postgres adapter relies on:
      inserting an r_param before the column exists fails, default-logged
      rows get "direct" once the column exists, dropping the column erases
      every stored value.
    - Group ordering is count descending; ties keep first-seen order.

LLM Prompt Example:
    "Explain how an in-memory store can reproduce the observable effects of
     ALTER TABLE ADD/DROP COLUMN so that migration logic is testable without
     a database."
"""

from typing import Any, Dict, FrozenSet, List, Optional

from ..models import (
    R_PARAM_COLUMN,
    R_PARAM_DEFAULT,
    R_PARAM_INDEX,
    AggregationRow,
    ClickRecord,
    InsertResult,
    MigrationResult,
)
from .base import BaseClickStore, StorageError


class ClickStore(BaseClickStore):
    def __init__(self, has_ref_column: bool = False):
        """
        Initialize an empty click log.

        Internal schema:
            self.rows = [
                {
                    "click_time": datetime,
                    "shorturl": str,
                    "referrer": str,
                    "user_agent": str,
                    "ip_address": str,
                    "country_code": str,
                    "r_param": str,      # only while the column exists
                },
            ]
        """
        self.rows: List[Dict[str, Any]] = []
        self.has_ref_column = has_ref_column
        self.has_ref_index = False

    # ---- Schema ------------------------------------------------------------

    def add_ref_column(self) -> MigrationResult:
        step = f"add column {R_PARAM_COLUMN}"
        if self.has_ref_column:
            return MigrationResult.exists(step, f"column {R_PARAM_COLUMN!r} already exists")
        self.has_ref_column = True
        for row in self.rows:
            row[R_PARAM_COLUMN] = R_PARAM_DEFAULT
        return MigrationResult.ok(step)

    def add_ref_index(self) -> MigrationResult:
        step = f"create index {R_PARAM_INDEX}"
        if not self.has_ref_column:
            return MigrationResult.failure(step, f"column {R_PARAM_COLUMN!r} does not exist")
        if self.has_ref_index:
            return MigrationResult.exists(step, f"index {R_PARAM_INDEX!r} already exists")
        self.has_ref_index = True
        return MigrationResult.ok(step)

    def drop_ref_index(self) -> MigrationResult:
        step = f"drop index {R_PARAM_INDEX}"
        if not self.has_ref_index:
            return MigrationResult.missing(step, f"index {R_PARAM_INDEX!r} does not exist")
        self.has_ref_index = False
        return MigrationResult.ok(step)

    def drop_ref_column(self) -> MigrationResult:
        step = f"drop column {R_PARAM_COLUMN}"
        if not self.has_ref_column:
            return MigrationResult.missing(step, f"column {R_PARAM_COLUMN!r} does not exist")
        self.has_ref_column = False
        # Dropping a column drops indexes built on it.
        self.has_ref_index = False
        for row in self.rows:
            row.pop(R_PARAM_COLUMN, None)
        return MigrationResult.ok(step)

    # ---- Write path --------------------------------------------------------

    def insert_click(self, record: ClickRecord) -> InsertResult:
        if record.r_param is not None and not self.has_ref_column:
            return InsertResult.fail(f"column {R_PARAM_COLUMN!r} does not exist")

        row: Dict[str, Any] = {
            "click_time": record.click_time,
            "shorturl": record.short_url,
            "referrer": record.referrer,
            "user_agent": record.user_agent,
            "ip_address": record.ip_address,
            "country_code": record.country_code,
        }
        if self.has_ref_column:
            row[R_PARAM_COLUMN] = record.r_param if record.r_param is not None else R_PARAM_DEFAULT
        self.rows.append(row)
        return InsertResult.ok(1)

    # ---- Read path ---------------------------------------------------------

    def _matching(self, short_url: str, r_params: FrozenSet[str]) -> List[Dict[str, Any]]:
        if not self.has_ref_column:
            raise StorageError(f"column {R_PARAM_COLUMN!r} does not exist")
        return [
            row
            for row in self.rows
            if row["shorturl"] == short_url and (not r_params or row[R_PARAM_COLUMN] in r_params)
        ]

    def group_by_ref(
        self,
        short_url: str,
        r_params: FrozenSet[str] = frozenset(),
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[AggregationRow]:
        counts: Dict[str, int] = {}
        for row in self._matching(short_url, r_params):
            key = row[R_PARAM_COLUMN]
            counts[key] = counts.get(key, 0) + 1

        # sorted() is stable, so equal counts stay in first-seen order
        ordered = sorted(counts.items(), key=lambda item: item[1], reverse=True)
        end = None if limit is None else offset + limit
        return [AggregationRow(r_param=k, clicks=v) for k, v in ordered[offset:end]]

    def count_refs(self, short_url: str, r_params: FrozenSet[str] = frozenset()) -> int:
        return len({row[R_PARAM_COLUMN] for row in self._matching(short_url, r_params)})
