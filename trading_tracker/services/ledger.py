# trading_tracker/services/ledger.py

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from trading_tracker.db.database import store_errors
from trading_tracker.models.closed_trade import BotClosedTrade
from trading_tracker.models.enums import FillEventType
from trading_tracker.models.fill import BotFill

logger = logging.getLogger(__name__)

DEDUP_COLUMNS = ["position_id", "event_type", "ts"]


async def fill_exists(
    session: AsyncSession,
    position_id: str,
    event_type: FillEventType,
    ts: datetime,
) -> bool:
    result = await session.execute(
        select(BotFill.id)
        .where(
            BotFill.position_id == position_id,
            BotFill.event_type == event_type.value,
            BotFill.ts == ts,
        )
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


def _insert_if_absent(session: AsyncSession, values: Dict[str, Any]):
    """
    INSERT ... ON CONFLICT (dedup key) DO NOTHING where the dialect supports it,
    so two writers racing past fill_exists cannot both insert.
    """
    dialect_name = session.get_bind().dialect.name

    if dialect_name == "postgresql":
        stmt = postgresql.insert(BotFill).values(**values).on_conflict_do_nothing(
            index_elements=DEDUP_COLUMNS
        )
    elif dialect_name == "sqlite":
        stmt = sqlite.insert(BotFill).values(**values).on_conflict_do_nothing(
            index_elements=DEDUP_COLUMNS
        )
    else:
        stmt = insert(BotFill).values(**values)

    return stmt.returning(BotFill.id)


async def append_fill(
    session: AsyncSession,
    *,
    ts: datetime,
    position_id: str,
    symbol: str,
    side: Optional[str],
    event_type: FillEventType,
    qty: Optional[float],
    price: Optional[float],
    realized_pnl: Optional[float] = None,
    meta: Optional[Dict[str, Any]] = None,
) -> bool:
    """
    Append one fill and commit it.

    Returns True when a row was written, False when the
    (position_id, event_type, ts) key was already recorded (idempotent no-op).
    Store failures raise StoreError; nothing written earlier is undone.
    """
    async with store_errors(session, f"append {event_type.value} fill for {position_id}"):
        if await fill_exists(session, position_id, event_type, ts):
            logger.debug("fill %s %s @ %s already recorded", event_type.value, position_id, ts)
            return False

        values = {
            "ts": ts,
            "position_id": position_id,
            "symbol": symbol,
            "side": side,
            "event_type": event_type.value,
            "qty": qty,
            "price": price,
            "realized_pnl": realized_pnl,
            "meta": meta,
        }

        result = await session.execute(_insert_if_absent(session, values))
        inserted_id = result.scalar_one_or_none()

        await session.commit()

    if inserted_id is None:
        logger.info("fill %s %s @ %s lost insert race; skipped", event_type.value, position_id, ts)
        return False

    logger.info("fill %s %s qty=%s price=%s recorded", event_type.value, position_id, qty, price)
    return True


async def record_closed_trade(
    session: AsyncSession,
    *,
    closed_at: datetime,
    symbol: str,
    side: Optional[str],
    qty: Optional[float],
    exit_price: Optional[float],
    pnl: Optional[float],
    entry_price: Optional[float] = None,
    fees: float = 0.0,
    strategy: Optional[str] = None,
) -> BotClosedTrade:
    async with store_errors(session, f"record closed trade for {symbol}"):
        row = BotClosedTrade(
            closed_at=closed_at,
            symbol=symbol,
            side=side,
            qty=qty,
            entry_price=entry_price,
            exit_price=exit_price,
            pnl=pnl,
            fees=fees,
            strategy=strategy,
        )
        session.add(row)
        await session.commit()
        await session.refresh(row)

    logger.info("closed trade %s qty=%s exit=%s pnl=%s recorded", symbol, qty, exit_price, pnl)
    return row
