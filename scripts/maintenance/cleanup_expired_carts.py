#!/usr/bin/env python3
"""Delete shopping carts whose expiry timestamp has passed."""

from __future__ import annotations

import argparse
import asyncio
import json
import os
from datetime import datetime, timezone

from shopdesk.cart_service.app.repository import CartRepository
from shopdesk.cart_service.app.services import CartService
from shopdesk.common import (
    DEFAULT_DATABASE_URL,
    ServiceSettings,
    dispose_engines,
    get_session_factory,
    lifespan_session,
    resolve_database_url,
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Remove expired shopping carts")
    parser.add_argument(
        "--database-url",
        default=os.getenv("SHOPDESK_DATABASE_URL"),
        help="Database to clean (default: SHOPDESK_DATABASE_URL or %s)" % DEFAULT_DATABASE_URL,
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report how many carts have expired without deleting them",
    )
    return parser.parse_args()


async def _cleanup(database_url: str, *, dry_run: bool) -> dict[str, object]:
    session_factory = get_session_factory(database_url)
    now = datetime.now(timezone.utc)
    async with lifespan_session(session_factory) as session:
        repository = CartRepository(session)
        if dry_run:
            expired = await repository.count_expired(now=now)
            return {"dry_run": True, "expired": expired, "cutoff": now.isoformat()}
        removed = await CartService(repository).cleanup_expired_carts()
    return {"dry_run": False, "removed": removed, "cutoff": now.isoformat()}


async def main_async() -> int:
    args = parse_args()
    settings = ServiceSettings(app_name="cart-cleanup", database_url=args.database_url)
    database_url = resolve_database_url(settings, DEFAULT_DATABASE_URL)
    try:
        report = await _cleanup(database_url, dry_run=args.dry_run)
    finally:
        await dispose_engines()

    print(json.dumps(report, indent=2, sort_keys=True))
    return 0


def main() -> None:
    try:
        exit_code = asyncio.run(main_async())
    except Exception as exc:
        print(json.dumps({"error": str(exc)}))
        exit_code = 1
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
