"""
Base click-log storage interface for Ref Tracking.

Purpose:
    Define a small, stable contract over the host's click-log table that
    both the in-memory reference store and the Postgres adapter implement,
    so the schema manager, recorder and aggregator never touch a driver.

Conventions:
    - DDL methods never raise for expected conditions; they return a
      MigrationResult (OK / ALREADY_EXISTS / MISSING / FAILED).
    - insert_click never raises; failures come back as InsertResult.fail.
    - Read methods (group_by_ref, count_refs) DO raise on storage errors.

Testing & Coverage:
    Abstract method bodies are annotated with `# pragma: no cover`.

LLM Prompt Example:
    "Show how a narrow storage interface that returns explicit result types
    for DDL and inserts keeps best-effort logging policy visible in callers."
"""

from abc import ABC, abstractmethod
from typing import FrozenSet, List, Optional

from ..models import AggregationRow, ClickRecord, InsertResult, MigrationResult


class StorageError(Exception):
    """Raised by read operations when the click-log cannot be queried."""


class BaseClickStore(ABC):
    """Abstract base class for click-log backends."""

    # ---- Schema (DDL) ------------------------------------------------------

    @abstractmethod  # pragma: no cover
    def add_ref_column(self) -> MigrationResult:
        """Add `r_param VARCHAR(255) NOT NULL DEFAULT 'direct'`."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def add_ref_index(self) -> MigrationResult:
        """Create the secondary index `idx_r_param` on r_param."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def drop_ref_index(self) -> MigrationResult:
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def drop_ref_column(self) -> MigrationResult:
        raise NotImplementedError

    # ---- Write path --------------------------------------------------------

    @abstractmethod  # pragma: no cover
    def insert_click(self, record: ClickRecord) -> InsertResult:
        """
        Insert one click row.

        When `record.r_param` is None the r_param column is left out of the
        statement so the schema default ("direct") applies.
        """
        raise NotImplementedError

    # ---- Read path ---------------------------------------------------------

    @abstractmethod  # pragma: no cover
    def group_by_ref(
        self,
        short_url: str,
        r_params: FrozenSet[str] = frozenset(),
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[AggregationRow]:
        """
        Return click counts per r_param for `short_url`, highest count first.

        Args:
            short_url (str): Keyword whose clicks are grouped.
            r_params (FrozenSet[str]): Allow-list; empty means no filter.
            limit (Optional[int]): Max groups to return; None for all.
            offset (int): Groups to skip.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def count_refs(self, short_url: str, r_params: FrozenSet[str] = frozenset()) -> int:
        """Number of distinct r_param values for `short_url` under the filter."""
        raise NotImplementedError

    # ---- Lifecycle ---------------------------------------------------------

    def close(self) -> None:
        """Release backend resources; the in-memory store has none."""
