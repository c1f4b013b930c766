"""CLI script to create the ledger tables and seed the location categories."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Seed the fixed set of charge locations (Restaurant, Spa, ...)."
    )
    parser.add_argument(
        "names",
        nargs="*",
        help="Category names to add; defaults to DEFAULT_CATEGORIES from settings.",
    )
    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="Override DATABASE_URL env var for this run.",
    )
    return parser.parse_args()


def ensure_backend_on_path() -> None:
    backend_dir = Path(__file__).resolve().parents[1]
    if str(backend_dir) not in sys.path:
        sys.path.insert(0, str(backend_dir))


def main() -> None:
    args = parse_args()
    ensure_backend_on_path()

    if args.database_url:
        os.environ["DATABASE_URL"] = args.database_url

    from roomledger.core.config import settings
    from roomledger.core.log import configure_logging
    from roomledger.db.session import SessionLocal, init_db
    from roomledger.services.categories import list_categories, seed_default_categories

    configure_logging()
    init_db()

    with SessionLocal() as session:
        added = seed_default_categories(session, args.names or None)
        total = len(list_categories(session))

    print(f"Added {added} categories ({total} total) in {settings.database_url}")


if __name__ == "__main__":
    main()
