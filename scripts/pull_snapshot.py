"""
Run one bot pull outside the HTTP server (e.g. from a system cron).

Usage:
  DATABASE_URL=... BOT_DASHBOARD_URL=... python scripts/pull_snapshot.py
  python scripts/pull_snapshot.py --diff-only   # re-diff the two latest snapshots
"""
import argparse
import asyncio
import sys

import httpx

from trading_tracker.config import get_settings
from trading_tracker.db.database import AsyncSessionLocal
from trading_tracker.errors import TrackerError
from trading_tracker.services.snapshot_pull import PullResult, derive_fills, pull_snapshot


def _report(result: PullResult) -> None:
    print(f"snapshot {result.snapshot_id}: {len(result.events)} position changes")
    for e in result.events:
        print(f"  {e.event_type.value:<5} {e.position_id} qty={e.qty} price={e.price}")
    print(f"fills written: {result.written}, already recorded: {result.skipped}")


async def main(url: str | None, diff_only: bool) -> int:
    settings = get_settings()

    async with AsyncSessionLocal() as session:
        try:
            if diff_only:
                result = await derive_fills(session)
            else:
                target = url or settings.bot_dashboard_url
                if not target:
                    print("BOT_DASHBOARD_URL missing", file=sys.stderr)
                    return 2
                async with httpx.AsyncClient(timeout=settings.bot_fetch_timeout) as client:
                    result = await pull_snapshot(session, client, target)
        except TrackerError as exc:
            print(f"pull failed ({exc.status_code}): {exc.message}", file=sys.stderr)
            return 1
        except ValueError as exc:
            print(f"nothing to do: {exc}", file=sys.stderr)
            return 1

    _report(result)
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Pull a bot snapshot and derive fills.")
    parser.add_argument("--url", help="override BOT_DASHBOARD_URL")
    parser.add_argument("--diff-only", action="store_true", help="skip the fetch; re-diff the latest snapshots")
    args = parser.parse_args()

    sys.exit(asyncio.run(main(args.url, args.diff_only)))
