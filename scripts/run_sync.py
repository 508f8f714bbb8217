#!/usr/bin/env python3
"""
Run one full register sync: categories, members, interests, payments, summaries.

Settings come from register_config/data/settings.yaml (or
$REGISTER_SETTINGS_PATH); $REGISTER_DATABASE_URL overrides the database URL.

Usage:
    python3 scripts/run_sync.py [options]

Examples:
    # Full sync against the configured database
    python3 scripts/run_sync.py

    # Local SQLite file, tables created on first run
    python3 scripts/run_sync.py --db-url sqlite:///register.db --create-tables

    # Sequential fetches, no deadline
    python3 scripts/run_sync.py --no-concurrent-fetches --no-deadline
"""

from __future__ import annotations

import argparse
import dataclasses
import sys
from pathlib import Path

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Sync the Register of Members' Financial Interests into the payment ledger.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="Settings YAML (default: $REGISTER_SETTINGS_PATH or packaged settings.yaml).",
    )
    parser.add_argument(
        "--db-url",
        default=None,
        help="Database URL (overrides settings and $REGISTER_DATABASE_URL).",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before syncing.",
    )
    parser.add_argument(
        "--no-concurrent-fetches",
        action="store_true",
        help="Fetch bulk and employment interests one after the other.",
    )
    parser.add_argument(
        "--no-deadline",
        action="store_true",
        help="Disable the run deadline.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Log level for the register logger (default: INFO).",
    )
    return parser.parse_args()


def main() -> int:
    args = _parse_args()

    # Lazy imports so we fail fast on args first
    from register_config import load_settings
    from register_kernel.db.engine import (
        create_tables,
        get_session_factory,
        init_engine_from_url,
    )
    from register_kernel.exceptions import RegisterError
    from register_kernel.logging_config import configure_logging
    from register_ingestion.sources import ParliamentRegisterSource
    from register_sync.orchestrator import SyncOrchestrator

    configure_logging(level=args.log_level)

    try:
        settings = load_settings(args.settings)
    except Exception as e:
        print(f"ERROR: Failed to load settings: {e}", file=sys.stderr)
        return 1

    changes = {}
    if args.db_url:
        changes["database_url"] = args.db_url
    if args.no_concurrent_fetches:
        changes["concurrent_fetches"] = False
    if args.no_deadline:
        changes["deadline_seconds"] = None
    settings = dataclasses.replace(settings, **changes)

    try:
        init_engine_from_url(settings.database_url)
        if args.create_tables:
            create_tables()
    except Exception as e:
        print(f"ERROR: Database init failed: {e}", file=sys.stderr)
        return 1

    source = ParliamentRegisterSource(
        members_api_base=settings.members_api_base,
        interests_api_base=settings.interests_api_base,
        page_size=settings.page_size,
        page_delay_seconds=settings.page_delay_seconds,
        timeout_seconds=settings.request_timeout_seconds,
    )
    orchestrator = SyncOrchestrator(get_session_factory(), source, settings)

    try:
        print("Syncing register...")
        result = orchestrator.run()
    except RegisterError as e:
        print(f"ERROR [{e.code}]: {e}", file=sys.stderr)
        return 1
    finally:
        source.close()

    print(f"  Run:        {result.run_id}")
    print(f"  Categories: {result.categories_processed}")
    print(f"  Members:    {result.members_processed}")
    print(f"  Interests:  {result.interests_processed}")
    print(f"  Payments:   {result.payments_created}")
    print(f"  Payers:     {result.payers_created} created, {result.payers_updated} updated")
    print(f"  Duration:   {result.duration_seconds:.1f}s")
    if result.errors:
        print(f"  Errors ({len(result.errors)}):")
        for error in result.errors[:10]:
            print(f"    {error}")
        if len(result.errors) > 10:
            print(f"    ... and {len(result.errors) - 10} more.")
    return 0 if not result.errors else 2


if __name__ == "__main__":
    sys.exit(main())
