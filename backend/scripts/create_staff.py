"""CLI script to create a staff account and print its API token.

The token is what the waiter/receptionist/admin client sends as
``Authorization: Bearer <token>``; the display name given here is the actor
recorded in every audit row that account produces.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a room ledger staff account.")
    parser.add_argument("--name", required=True, help="Display name shown in audit logs")
    parser.add_argument(
        "--role",
        required=True,
        choices=["admin", "receptionist", "waiter"],
        help="Staff role controlling which ledger actions are allowed",
    )
    parser.add_argument(
        "--token",
        type=str,
        default=None,
        help="Use this API token instead of generating one.",
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
    from roomledger.services.errors import LedgerError
    from roomledger.services.staff import create_staff

    configure_logging()
    init_db()

    with SessionLocal() as session:
        try:
            member = create_staff(session, args.name, args.role, api_token=args.token)
        except LedgerError as exc:
            raise SystemExit(f"Could not create account: {exc}")

    print(f"Created {member.role} '{member.display_name}' in {settings.database_url}")
    print(f"API token: {member.api_token}")


if __name__ == "__main__":
    main()
