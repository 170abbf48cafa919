# trading_tracker/services/signal_ingest.py

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from trading_tracker.db.database import store_errors
from trading_tracker.models.enums import SignalAction
from trading_tracker.models.signal import TvSignal
from trading_tracker.models.tv_trade import TvTrade
from trading_tracker.schemas.signal import SignalPayload
from trading_tracker.services.trade_close import close_trade
from trading_tracker.utils.coerce import utcnow

logger = logging.getLogger(__name__)


class TradeOutcome(str, Enum):
    OPENED = "opened"
    CLOSED = "closed"
    NOOP = "noop"  # LONG/SHORT while open, or CLOSE with nothing open
    SKIPPED = "skipped"  # not an execution alert


@dataclass
class IngestResult:
    signal: TvSignal
    outcome: TradeOutcome
    trade: Optional[TvTrade] = None
    # captured at insert; a rolled-back open expires the signal row
    signal_id: Optional[int] = None


def normalize_signal(raw: Any) -> SignalPayload:
    return SignalPayload.model_validate(raw if isinstance(raw, dict) else {})


async def store_signal(
    session: AsyncSession,
    raw: Any,
    payload: SignalPayload,
    received_at: datetime,
) -> TvSignal:
    """Persist the alert verbatim (plus normalized columns) before anything else."""
    row = TvSignal(
        received_at=received_at,
        type=payload.type,
        strategy=payload.strategy,
        symbol=payload.symbol,
        action=payload.action,
        timeframe=payload.timeframe,
        signal_id=payload.signal_id,
        bar_time=payload.bar_time,
        price=payload.price,
        raw_payload=raw,
    )
    async with store_errors(session, "insert signal"):
        session.add(row)
        await session.commit()
        await session.refresh(row)

    logger.info(
        "signal %s stored: type=%s %s %s %s",
        row.id,
        payload.type,
        payload.symbol,
        payload.timeframe,
        payload.action,
    )
    return row


async def find_open_trade(
    session: AsyncSession,
    strategy: str,
    symbol: str,
    timeframe: str,
) -> Optional[TvTrade]:
    """Most recent open trade for the key (there should be at most one)."""
    result = await session.execute(
        select(TvTrade)
        .where(
            TvTrade.strategy == strategy,
            TvTrade.symbol == symbol,
            TvTrade.timeframe == timeframe,
            TvTrade.exit_time.is_(None),
        )
        .order_by(TvTrade.entry_time.desc(), TvTrade.id.desc())
        .limit(1)
    )
    return result.scalars().first()


async def open_logical_trade(
    session: AsyncSession,
    payload: SignalPayload,
    at: datetime,
) -> Optional[TvTrade]:
    """
    LONG/SHORT: open a trade unless one is already open for the key.
    Returns None when the key already has an open trade.
    """
    async with store_errors(session, "open logical trade"):
        existing = await find_open_trade(session, payload.strategy_key, payload.symbol, payload.timeframe)
        if existing is not None:
            logger.info(
                "%s %s %s already open (trade %s); %s ignored",
                payload.strategy_key,
                payload.symbol,
                payload.timeframe,
                existing.id,
                payload.action,
            )
            return None

        trade = TvTrade(
            strategy=payload.strategy_key,
            symbol=payload.symbol,
            timeframe=payload.timeframe,
            direction=payload.action,
            entry_time=at,
            entry_price=payload.price,
            entry_signal_id=payload.signal_id,
        )
        session.add(trade)
        try:
            await session.commit()
        except IntegrityError:
            # partial unique index: a concurrent request opened it first
            await session.rollback()
            logger.info(
                "%s %s %s opened concurrently; %s ignored",
                payload.strategy_key,
                payload.symbol,
                payload.timeframe,
                payload.action,
            )
            return None
        await session.refresh(trade)

    logger.info(
        "trade %s opened: %s %s %s %s @ %s",
        trade.id,
        trade.strategy,
        trade.symbol,
        trade.timeframe,
        trade.direction,
        trade.entry_price,
    )
    return trade


async def close_logical_trade(
    session: AsyncSession,
    payload: SignalPayload,
    at: datetime,
) -> Optional[TvTrade]:
    """
    CLOSE: close the most recent open trade for the key.
    Returns None (and writes nothing) when no trade is open.
    """
    async with store_errors(session, "close logical trade"):
        trade = await find_open_trade(session, payload.strategy_key, payload.symbol, payload.timeframe)
        if trade is None:
            logger.info(
                "CLOSE for %s %s %s with no open trade; ignored",
                payload.strategy_key,
                payload.symbol,
                payload.timeframe,
            )
            return None

        close_trade(trade, exit_price=payload.price, closed_at=at, exit_signal_id=payload.signal_id)
        await session.commit()
        await session.refresh(trade)

    logger.info("trade %s closed @ %s pnl=%s win=%s", trade.id, trade.exit_price, trade.pnl, trade.win)
    return trade


async def ingest_signal(
    session: AsyncSession,
    raw: Any,
    received_at: Optional[datetime] = None,
) -> IngestResult:
    """
    Store the alert, then (EXEC alerts only) drive the logical trade state machine:
    NO_OPEN_TRADE -> OPEN (LONG/SHORT) -> CLOSED (CLOSE).
    """
    received_at = received_at or utcnow()
    payload = normalize_signal(raw)

    signal = await store_signal(session, raw, payload, received_at)
    signal_id = signal.id

    if not payload.is_execution:
        return IngestResult(signal=signal, outcome=TradeOutcome.SKIPPED, signal_id=signal_id)

    at = payload.bar_time or received_at

    if payload.signal_action is SignalAction.CLOSE:
        trade = await close_logical_trade(session, payload, at)
        outcome = TradeOutcome.CLOSED if trade is not None else TradeOutcome.NOOP
    else:
        trade = await open_logical_trade(session, payload, at)
        outcome = TradeOutcome.OPENED if trade is not None else TradeOutcome.NOOP

    return IngestResult(signal=signal, outcome=outcome, trade=trade, signal_id=signal_id)
