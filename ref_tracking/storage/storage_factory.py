"""
Storage factory – switch click-log backend from config (lazy env version)
========================================================================

This module centralizes selection of the click-log backend (in-memory vs
Postgres) so the plugin components stay ignorant of where clicks live.

- Reads environment **at call time** to avoid stale values in tests.
- Imports the DB backend **only if** the selected backend is "postgres".

Environment variables
---------------------
- REF_STORAGE_BACKEND: "memory" (default) or "postgres"
- REF_DB_DSN:          DSN string if backend=="postgres"
- REF_LOG_TABLE:       click-log table name (default "log")
"""

import logging
import os
from typing import Optional

from ref_tracking.storage.base import BaseClickStore
from ref_tracking.storage.storage import ClickStore

log = logging.getLogger("ref_tracking.storage")


def get_store(backend: Optional[str] = None, **kwargs) -> BaseClickStore:
    """
    Return a BaseClickStore implementation based on configuration.

    Parameters
    ----------
    backend : str, optional
        "memory" (default) or "postgres". If omitted, reads REF_STORAGE_BACKEND.
    kwargs : dict
        Extra args for the backend. For postgres: dsn="...", table="...".

    Raises
    ------
    ValueError
        Unknown backend, or postgres selected without a DSN.
    """
    be = (backend or os.getenv("REF_STORAGE_BACKEND", "memory")).strip().lower()
    log.debug("Selected click-log backend: %r", be)

    if be == "memory":
        return ClickStore(has_ref_column=kwargs.get("has_ref_column", False))

    if be == "postgres":
        dsn = kwargs.get("dsn") or os.getenv("REF_DB_DSN", "")
        if not dsn:
            raise ValueError("DB_DSN is required for postgres backend (env REF_DB_DSN)")
        table = kwargs.get("table") or os.getenv("REF_LOG_TABLE", "log")
        # Local import to avoid a hard dependency when not using postgres
        from ref_tracking.storage.db_storage import DBClickStore

        return DBClickStore(dsn=dsn, table=table)

    raise ValueError(f"Unknown storage backend: {be!r}")
