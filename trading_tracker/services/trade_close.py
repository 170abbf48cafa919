from __future__ import annotations

from datetime import datetime
from typing import Optional, Tuple

from trading_tracker.models.enums import TradeDirection
from trading_tracker.models.tv_trade import TvTrade


def compute_pnl(
    direction: str,
    entry_price: Optional[float],
    exit_price: Optional[float],
) -> Tuple[Optional[float], Optional[bool]]:
    """
    Per-unit PnL of a logical trade and its win flag.
    LONG: exit - entry, SHORT: entry - exit. Unknown prices give (None, None).
    """
    if entry_price is None or exit_price is None:
        return None, None

    if TradeDirection(direction) is TradeDirection.LONG:
        pnl = exit_price - entry_price
    else:
        pnl = entry_price - exit_price

    return pnl, pnl > 0


def close_trade(
    trade: TvTrade,
    exit_price: Optional[float],
    closed_at: datetime,
    exit_signal_id: Optional[str] = None,
) -> TvTrade:
    """
    Close an open logical trade in place.
    """
    if trade.exit_time is not None:
        raise ValueError("Trade is already closed.")

    pnl, win = compute_pnl(trade.direction, trade.entry_price, exit_price)

    trade.exit_time = closed_at
    trade.exit_price = exit_price
    trade.exit_signal_id = exit_signal_id
    trade.pnl = pnl
    trade.win = win

    return trade
