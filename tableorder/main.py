"""Entry point for the table-order Textual app."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from tableorder.api import ApiClient
from tableorder.config import resolve_api_base_url, resolve_debug_log_path
from tableorder.errors import TableOrderError
from tableorder.models import Table
from tableorder.order_app import TableOrderApp
from tableorder.session import table_from_scan

logger = logging.getLogger("tableorder")


def configure_logging(path: str, verbose: bool = False) -> None:
    """Send logs to a file; the terminal belongs to the Textual app."""
    log_file = Path(path)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="tableorder", description="Order from your table.")
    parser.add_argument("scan", nargs="?", help="URL (or query string) from the table's QR code")
    parser.add_argument("--table-id", help="Look up the table by id instead of a scanned URL")
    parser.add_argument("--api", default=None, help=f"Service base URL (default {resolve_api_base_url()})")
    parser.add_argument("--verbose", action="store_true", help="Write debug records to the log file")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Run the Textual application."""
    args = _parse_args(argv)
    configure_logging(resolve_debug_log_path(), args.verbose)

    table = None
    if args.scan:
        try:
            table = table_from_scan(args.scan)
        except TableOrderError as exc:
            raise SystemExit(str(exc)) from exc
    elif args.table_id:
        table = asyncio.run(_lookup_table(args.api, args.table_id))

    TableOrderApp(api=ApiClient(base_url=args.api), table=table).run()


async def _lookup_table(base_url: str | None, table_id: str) -> Table:
    async with ApiClient(base_url=base_url) as api:
        try:
            return await api.get_table(table_id)
        except TableOrderError as exc:
            raise SystemExit(f"Table lookup failed: {exc}") from exc


if __name__ == "__main__":
    main()
