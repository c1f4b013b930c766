"""Poll the ledger API and print the open transactions, like the reception screen."""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Watch room ledger transactions from the terminal.")
    parser.add_argument("--token", required=True, help="Staff API token.")
    parser.add_argument("--base-url", default="http://localhost:8000", help="Ledger API base URL.")
    parser.add_argument("--room", default=None, help="Only show this room.")
    parser.add_argument("--search", default=None, help="Free-text search over the list.")
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Polling interval in seconds (defaults to REFRESH_INTERVAL_SECONDS).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=15.0,
        help="HTTP timeout per request in seconds.",
    )
    parser.add_argument("--once", action="store_true", help="Print one snapshot and exit.")
    return parser.parse_args()


def ensure_backend_on_path() -> None:
    backend_dir = Path(__file__).resolve().parents[1]
    if str(backend_dir) not in sys.path:
        sys.path.insert(0, str(backend_dir))


def render(board) -> None:
    rows = board.visible()
    print(f"--- {len(rows)} transactions ({time.strftime('%H:%M:%S')}) ---")
    for row in rows:
        print(
            f"#{row['id']:<5} room {row['room_id']:<6} {row['location']:<14} "
            f"{row['amount']:>9.2f}  {row['status']:<9} {row['admin_status']:<6} {row.get('waiter_name') or ''}"
        )


def main() -> None:
    args = parse_args()
    ensure_backend_on_path()

    from roomledger.client import LedgerClient
    from roomledger.core.log import configure_logging
    from roomledger.services.board import TransactionBoard

    configure_logging()

    with LedgerClient(args.token, args.base_url, timeout=args.timeout) as client:
        board = TransactionBoard(client.fetcher(), refresh_interval=args.interval)
        if args.room:
            board.set_filters(room_id=args.room)
        board.set_search(args.search)

        board.refresh()
        render(board)
        if args.once:
            return
        try:
            while True:
                time.sleep(1)
                if board.refresh_if_due():
                    render(board)
        except KeyboardInterrupt:
            pass


if __name__ == "__main__":
    main()
