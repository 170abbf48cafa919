# trading_tracker/services/snapshot_pull.py

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trading_tracker.db.database import store_errors
from trading_tracker.models.snapshot import BotSnapshot
from trading_tracker.schemas.snapshot import SnapshotDocument, SnapshotSummary
from trading_tracker.services.ledger import append_fill
from trading_tracker.services.position_differ import PositionEvent, diff_positions, extract_positions
from trading_tracker.services.snapshot_fetcher import fetch_snapshot
from trading_tracker.utils.coerce import timestamp_or_now

logger = logging.getLogger(__name__)


@dataclass
class PullResult:
    snapshot_id: int
    summary: SnapshotSummary
    events: List[PositionEvent] = field(default_factory=list)
    written: int = 0
    skipped: int = 0


async def write_snapshot(session: AsyncSession, document: Dict[str, Any]) -> BotSnapshot:
    """
    Persist one upstream document as a snapshot row (raw document included).
    A missing or unparsable ts falls back to the receipt time.
    """
    parsed = SnapshotDocument.model_validate(document)
    data = parsed.data

    snapshot = BotSnapshot(
        ts=timestamp_or_now(parsed.ts),
        cash=data.cash,
        equity=data.equity,
        open_pnl=data.open_pnl,
        realized_pnl=data.realized_pnl,
        positions_count=len(data.positions),
        raw=document,
    )

    async with store_errors(session, "insert snapshot"):
        session.add(snapshot)
        await session.commit()
        await session.refresh(snapshot)

    logger.info(
        "snapshot %s @ %s written (equity=%s, positions=%s)",
        snapshot.id,
        snapshot.ts,
        snapshot.equity,
        snapshot.positions_count,
    )
    return snapshot


async def latest_snapshots(session: AsyncSession, limit: int = 2) -> List[BotSnapshot]:
    async with store_errors(session, "load latest snapshots"):
        result = await session.execute(
            select(BotSnapshot)
            .order_by(BotSnapshot.ts.desc(), BotSnapshot.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())


async def derive_fills(session: AsyncSession) -> PullResult:
    """
    Diff the two most recent snapshots and append the resulting fills.

    Fills are stamped with the newest snapshot's ts, so re-running on the same
    pair is a no-op. The loop stops at the first store failure (StoreError
    propagates); fills already written stay written.
    """
    rows = await latest_snapshots(session, limit=2)
    if not rows:
        raise ValueError("no snapshots to diff")

    newest = rows[0]
    previous: Optional[BotSnapshot] = rows[1] if len(rows) > 1 else None

    prev_positions = extract_positions(previous.raw) if previous is not None else {}
    curr_positions = extract_positions(newest.raw)

    events = diff_positions(prev_positions, curr_positions)

    ts = newest.ts
    ts_label = _raw_ts(newest)

    result = PullResult(
        snapshot_id=newest.id,
        summary=_summary(newest),
        events=events,
    )

    for event in events:
        written = await append_fill(
            session,
            ts=ts,
            position_id=event.position_id,
            symbol=event.symbol,
            side=event.side,
            event_type=event.event_type,
            qty=event.qty,
            price=event.price,
            realized_pnl=None,  # not available per position from the bot
            meta={**event.meta, "dedupe_key": event.dedupe_key(ts_label)},
        )
        if written:
            result.written += 1
        else:
            result.skipped += 1

    logger.info(
        "snapshot %s diffed: %d events, %d fills written, %d skipped",
        newest.id,
        len(events),
        result.written,
        result.skipped,
    )
    return result


async def pull_snapshot(
    session: AsyncSession,
    client: httpx.AsyncClient,
    url: str,
) -> PullResult:
    """
    Full pull path: fetch -> write snapshot -> diff against the previous one -> fills.
    UpstreamError leaves the store untouched.
    """
    document = await fetch_snapshot(client, url)
    snapshot = await write_snapshot(session, document)

    result = await derive_fills(session)
    result.summary = _summary(snapshot)
    return result


def _raw_ts(snapshot: BotSnapshot) -> str:
    raw = snapshot.raw if isinstance(snapshot.raw, dict) else {}
    value = raw.get("ts")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return snapshot.ts.isoformat()


def _summary(snapshot: BotSnapshot) -> SnapshotSummary:
    return SnapshotSummary(
        equity=snapshot.equity,
        cash=snapshot.cash,
        open_pnl=snapshot.open_pnl,
        realized_pnl=snapshot.realized_pnl,
        positions_count=snapshot.positions_count,
    )
