"""
Schema manager for the r_param column.

Responsibilities:
    - ensure_schema(): add the r_param column and idx_r_param; idempotent
    - remove_schema(drop_enabled): drop index then column, or do nothing

Error policy:
    Every DDL step returns a MigrationResult. ALREADY_EXISTS / MISSING are
    normal outcomes of re-running a transition and are logged at DEBUG.
    FAILED is logged at WARNING. Nothing is raised to the lifecycle hook.

Dropping the column deletes every recorded r_param value; there is no
migration of historical data.
"""

import logging
from dataclasses import dataclass
from typing import Tuple

from ..models import MigrationResult, MigrationStatus
from ..storage.base import BaseClickStore

log = logging.getLogger("ref_tracking.schema")


@dataclass(frozen=True)
class SchemaReport:
    """Results of one lifecycle transition, in execution order."""

    steps: Tuple[MigrationResult, ...] = ()

    @property
    def ok(self) -> bool:
        return not any(step.is_failure for step in self.steps)


class SchemaManager:
    def __init__(self, store: BaseClickStore):
        self.store = store

    def _report(self, *results: MigrationResult) -> SchemaReport:
        for result in results:
            if result.status is MigrationStatus.OK:
                log.info("Schema step done: %s", result.step)
            elif result.is_failure:
                log.warning("Schema step failed: %s (%s)", result.step, result.reason)
            else:
                log.debug("Schema step skipped: %s (%s)", result.step, result.status.value)
        return SchemaReport(steps=tuple(results))

    def ensure_schema(self) -> SchemaReport:
        """
        Add the r_param column and its index.

        Column and index are attempted independently, so a half-applied
        migration (column present, index missing) is completed on re-run.
        """
        column = self.store.add_ref_column()
        index = self.store.add_ref_index()
        return self._report(column, index)

    def remove_schema(self, drop_enabled: bool) -> SchemaReport:
        """Drop idx_r_param then r_param when `drop_enabled`; no-op otherwise."""
        if not drop_enabled:
            log.info("Keeping r_param column (drop on disable is off)")
            return SchemaReport()
        index = self.store.drop_ref_index()
        column = self.store.drop_ref_column()
        return self._report(index, column)
