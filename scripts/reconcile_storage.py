#!/usr/bin/env python3
"""
Run object store / catalog reconciliation against the configured database.

Examples:
    python scripts/reconcile_storage.py check
    python scripts/reconcile_storage.py cleanup --grace-minutes 30
    python scripts/reconcile_storage.py analytics
    python scripts/reconcile_storage.py backup --output backup.json
    python scripts/reconcile_storage.py restore --input backup.json --user-id <admin id>
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import asdict
from datetime import timedelta
from pathlib import Path
from typing import Any

from gallery.core.config import get_settings
from gallery.core.container import get_container
from gallery.core.logging import configure_logging
from gallery.infrastructure.database import dispose_engine, get_session_factory
from gallery.infrastructure.database.repositories import SqlCatalogStore
from gallery.modules.consistency.backup import BackupManager
from gallery.modules.consistency.runner import build_checker


def _dump(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


async def run(args: argparse.Namespace) -> int:
    container = get_container()
    factory = get_session_factory()
    async with factory() as session:
        catalog = SqlCatalogStore(session)
        checker = build_checker(container, catalog)
        if args.grace_minutes is not None:
            checker.grace_period = timedelta(minutes=args.grace_minutes)

        if args.command == "orphans":
            orphans = await checker.find_orphaned_files()
            _dump({"orphans": orphans, "count": len(orphans)})
        elif args.command == "cleanup":
            report = await checker.cleanup_orphaned_files()
            _dump(asdict(report))
            return 1 if report.errors else 0
        elif args.command == "check":
            report = await checker.check_consistency()
            _dump({"issues": [asdict(issue) for issue in report.issues], "count": report.count, "errors": report.errors})
            return 1 if report.issues or report.errors else 0
        elif args.command == "health":
            report = await checker.get_storage_health()
            _dump(asdict(report))
            return 0 if report.status == "healthy" else 1
        elif args.command == "analytics":
            _dump(await catalog.analytics())
        elif args.command == "backup":
            manifest = await BackupManager(container.store, catalog).export_backup()
            text = json.dumps(asdict(manifest), ensure_ascii=False, indent=2, default=str)
            if args.output:
                Path(args.output).write_text(text, encoding="utf-8")
                print(f"[backup] {manifest.file_count} items written to {args.output}")
            else:
                print(text)
        elif args.command == "restore":
            if not args.user_id:
                raise SystemExit("--user-id is required for restore")
            manifest = json.loads(Path(args.input).read_text(encoding="utf-8"))
            report = await BackupManager(container.store, catalog).restore_backup(manifest, args.user_id)
            _dump(asdict(report))
            return 1 if report.failed else 0
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Reconcile gallery storage with the catalog")
    parser.add_argument(
        "command",
        choices=["orphans", "cleanup", "check", "health", "analytics", "backup", "restore"],
        help="Operation to run",
    )
    parser.add_argument("--grace-minutes", type=int, default=None, help="Override the orphan grace period")
    parser.add_argument("--output", help="File to write the backup manifest to")
    parser.add_argument("--input", help="Backup manifest to restore from")
    parser.add_argument("--user-id", help="Owner recorded on restored rows without one")
    args = parser.parse_args()

    configure_logging(get_settings())

    async def _main() -> int:
        try:
            return await run(args)
        finally:
            await dispose_engine()

    sys.exit(asyncio.run(_main()))


if __name__ == "__main__":
    main()
