from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trading_tracker.errors import ValidationError
from trading_tracker.models.closed_trade import BotClosedTrade
from trading_tracker.models.tv_trade import TvTrade
from trading_tracker.utils.coerce import utcnow

WINDOWS: Dict[str, Optional[timedelta]] = {
    "1d": timedelta(days=1),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "all": None,
}


def window_start(window: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """Start of a reporting window; None for all-time."""
    if window not in WINDOWS:
        raise ValidationError(f"unknown window: {window} (expected one of {', '.join(WINDOWS)})")
    span = WINDOWS[window]
    if span is None:
        return None
    return (now or utcnow()) - span


def _round(x: Optional[float], digits: int) -> Optional[float]:
    return round(x, digits) if x is not None else None


def compute_trade_stats(pnls: Iterable[Optional[float]]) -> Dict[str, Any]:
    """
    Stats over closed trades (one PnL each; trades without PnL are not counted).

    - win rate = wins / trades
    - profit factor = gross profit / |gross loss|, None with no losing trades
    """
    values = [float(p) for p in pnls if p is not None]

    wins = sum(1 for p in values if p > 0)
    losses = sum(1 for p in values if p < 0)
    breakeven = len(values) - wins - losses

    gross_profit = sum(p for p in values if p > 0)
    gross_loss = abs(sum(p for p in values if p < 0))
    trades = len(values)

    return {
        "trades": trades,
        "wins": wins,
        "losses": losses,
        "breakeven": breakeven,
        "net_pnl": round(sum(values), 4),
        "gross_profit": round(gross_profit, 4),
        "gross_loss": round(gross_loss, 4),
        "profit_factor": _round(gross_profit / gross_loss, 3) if gross_loss > 0 else None,
        "win_rate_pct": _round(wins / trades * 100.0, 2) if trades else None,
        "avg_pnl": _round(sum(values) / trades, 4) if trades else None,
    }


async def closed_logical_trades(
    session: AsyncSession,
    since: Optional[datetime] = None,
) -> List[TvTrade]:
    stmt = select(TvTrade).where(TvTrade.exit_time.is_not(None))
    if since is not None:
        stmt = stmt.where(TvTrade.exit_time >= since)
    result = await session.execute(stmt.order_by(TvTrade.exit_time.desc(), TvTrade.id.desc()))
    return list(result.scalars().all())


async def signal_stats(session: AsyncSession, window: str = "all") -> Dict[str, Any]:
    """Overall and per (strategy, symbol, timeframe) stats over closed logical trades."""
    since = window_start(window)
    trades = await closed_logical_trades(session, since)

    buckets: Dict[Tuple[str, str, str], List[Optional[float]]] = defaultdict(list)
    for t in trades:
        buckets[(t.strategy, t.symbol, t.timeframe)].append(t.pnl)

    by_key = [
        {"strategy": strategy, "symbol": symbol, "timeframe": timeframe, **compute_trade_stats(pnls)}
        for (strategy, symbol, timeframe), pnls in sorted(buckets.items())
    ]

    return {
        "window": window,
        "overall": compute_trade_stats(t.pnl for t in trades),
        "by_symbol_tf": by_key,
    }


async def bot_trade_stats(session: AsyncSession, window: str = "all") -> Dict[str, Any]:
    since = window_start(window)

    stmt = select(BotClosedTrade.pnl)
    if since is not None:
        stmt = stmt.where(BotClosedTrade.closed_at >= since)
    pnls = (await session.execute(stmt)).scalars().all()

    return {"window": window, "overall": compute_trade_stats(pnls)}
