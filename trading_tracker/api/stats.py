from typing import Any, Dict

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trading_tracker.db.database import get_db, store_errors
from trading_tracker.models.snapshot import BotSnapshot
from trading_tracker.services.metrics import bot_trade_stats, signal_stats

router = APIRouter(prefix="/api/stats", tags=["stats"])


def _f(x):
    return float(x) if x is not None else None


@router.get("/signals")
async def signals_stats(
    window: str = Query(default="all"),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """
    Stats over closed TradingView logical trades, bucketed by exit time.
    window: 1d / 7d / 30d / all
    """
    async with store_errors(db, "signal stats"):
        stats = await signal_stats(db, window)
    return {"ok": True, **stats}


@router.get("/bot")
async def bot_stats(
    window: str = Query(default="all"),
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    async with store_errors(db, "bot stats"):
        stats = await bot_trade_stats(db, window)
        snap = (
            await db.execute(
                select(BotSnapshot).order_by(BotSnapshot.ts.desc(), BotSnapshot.id.desc()).limit(1)
            )
        ).scalars().first()

    latest = None
    if snap is not None:
        latest = {
            "ts": snap.ts.isoformat(),
            "equity": _f(snap.equity),
            "cash": _f(snap.cash),
            "open_pnl": _f(snap.open_pnl),
            "realized_pnl": _f(snap.realized_pnl),
            "positions_count": snap.positions_count,
        }

    return {"ok": True, **stats, "latest_snapshot": latest}
