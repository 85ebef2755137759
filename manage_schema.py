# manage_schema.py
"""
Run the plugin's lifecycle transitions against the configured click log.

    python manage_schema.py enable
    python manage_schema.py disable              # drops r_param unless REF_DROP_ON_DISABLE=false
    python manage_schema.py disable --keep-data  # never drops

Backend selection follows REF_STORAGE_BACKEND / REF_DB_DSN / REF_LOG_TABLE;
--dsn and --table override them.
"""

import argparse
import logging
import sys
from typing import List, Optional

from ref_tracking.config import settings
from ref_tracking.plugin import RefTrackingPlugin
from ref_tracking.storage.storage_factory import get_store

log = logging.getLogger("ref_tracking.cli")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Add or remove the r_param click-log column.")
    ap.add_argument("command", choices=["enable", "disable"])
    ap.add_argument("--backend", default=None, help="memory or postgres (default: env)")
    ap.add_argument("--dsn", default=None, help="postgres DSN (default: REF_DB_DSN)")
    ap.add_argument("--table", default=None, help="click-log table (default: REF_LOG_TABLE)")
    ap.add_argument("--keep-data", action="store_true", help="disable without dropping r_param")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    kwargs = {}
    if args.dsn:
        kwargs["dsn"] = args.dsn
    if args.table:
        kwargs["table"] = args.table
    store = get_store(args.backend, **kwargs)

    plugin = RefTrackingPlugin(store, drop_on_disable=settings.DROP_ON_DISABLE and not args.keep_data)
    report = plugin.on_enable() if args.command == "enable" else plugin.on_disable()

    store.close()

    for step in report.steps:
        log.info("%-28s %s %s", step.step, step.status.value, step.reason)
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
