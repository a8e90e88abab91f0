"""CLI entrypoint for the AI News Navigator daily pipeline."""

from __future__ import annotations

import argparse
import json
import logging
import os
import threading

from dotenv import find_dotenv, load_dotenv

# Project modules read their settings at import time.
load_dotenv(find_dotenv(usecwd=True))

from scheduler import DailyScheduler  # noqa: E402
from store import DATE_FILTERS, KINDS, Store  # noqa: E402


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Fetch, enrich and store daily AI papers, news and products")
    parser.add_argument(
        "--db",
        default=None,
        help="SQLite database path (default: NAVIGATOR_DB_PATH or navigator.db)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("run", help="Run one daily update now and print the outcome")

    serve = subparsers.add_parser("serve", help="Run the daily update every day at 00:00 UTC")
    serve.add_argument("--run-now", action="store_true", help="Also run once immediately on startup")

    list_parser = subparsers.add_parser("list", help="Print stored records for a date window")
    list_parser.add_argument("kind", choices=KINDS)
    list_parser.add_argument("--filter", dest="date_filter", choices=DATE_FILTERS, default="week")

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Initialize logging and dispatch the requested command."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    args = parse_args(argv)

    store = Store(args.db or os.getenv("NAVIGATOR_DB_PATH", "navigator.db"))
    try:
        if args.command == "run":
            outcome = DailyScheduler(store).run_daily_update()
            print(json.dumps(outcome.to_dict(), ensure_ascii=False, indent=2))
        elif args.command == "serve":
            serve(store, run_now=args.run_now)
        else:
            records = store.list_by_filter(args.kind, args.date_filter)
            print(json.dumps(records, ensure_ascii=False, indent=2))
    finally:
        store.close()


def serve(store: Store, run_now: bool) -> None:
    """Start the daily scheduler and block until interrupted."""
    daily = DailyScheduler(store)
    daily.start()
    try:
        if run_now:
            outcome = daily.run_daily_update()
            logging.info("Startup run outcome: %s", outcome.to_dict())
        threading.Event().wait()
    except KeyboardInterrupt:
        logging.info("Interrupted, shutting down")
    finally:
        daily.stop()


if __name__ == "__main__":
    main()
