#!/usr/bin/env python3
"""
Reclassify every persisted payer with the current rule table and override list.

Manual-override payers are left alone.  Summary tables are rebuilt after
the update.

Usage:
    python3 scripts/reclassify_payers.py [--dry-run] [--overrides PATH]
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Re-run payer classification over the payers table.",
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
        "--overrides",
        type=Path,
        default=None,
        help="Override list YAML (default: overrides_path from settings).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change, then roll back.",
    )
    return parser.parse_args()


def main() -> int:
    args = _parse_args()

    from register_config import load_overrides, load_settings
    from register_kernel.db.engine import get_session, init_engine_from_url
    from register_kernel.logging_config import configure_logging
    from register_ingestion.classification import PayerClassifier
    from register_sync.services.reclassifier import PayerReclassifier

    configure_logging()

    try:
        settings = load_settings(args.settings)
        overrides = load_overrides(args.overrides or settings.overrides_path)
    except Exception as e:
        print(f"ERROR: Failed to load configuration: {e}", file=sys.stderr)
        return 1

    init_engine_from_url(args.db_url or settings.database_url)
    session = get_session()
    try:
        classifier = PayerClassifier(overrides=overrides)
        result = PayerReclassifier(session, classifier).reclassify_all(
            refresh_summaries=not args.dry_run,
        )
        if args.dry_run:
            session.rollback()
            print("Dry run: no changes written.")
        else:
            session.commit()

        print(f"  Payers:         {result.total_payers}")
        print(f"  Updated:        {result.updated}")
        print(f"  Skipped manual: {result.skipped_manual}")
        for error in result.errors:
            print(f"  {error}")
        return 0
    except Exception as e:
        session.rollback()
        print(f"ERROR: {e}", file=sys.stderr)
        raise
    finally:
        session.close()


if __name__ == "__main__":
    sys.exit(main())
