# trading_tracker/api/dashboard.py

import json
from html import escape
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trading_tracker.db.database import get_db, store_errors
from trading_tracker.models.closed_trade import BotClosedTrade
from trading_tracker.models.fill import BotFill
from trading_tracker.models.signal import TvSignal
from trading_tracker.models.snapshot import BotSnapshot
from trading_tracker.services.metrics import signal_stats

router = APIRouter(tags=["dashboard"])

RECENT_LIMIT = 10

_STYLE = """
body { padding: 24px; font-family: Arial, sans-serif; }
.row { border: 1px solid #ddd; padding: 10px; margin-bottom: 8px; }
.muted { font-size: 12px; opacity: 0.7; }
.stats { display: flex; gap: 16px; flex-wrap: wrap; }
pre { background: #f7f7f7; padding: 10px; }
"""


def _e(value: Any, placeholder: str = "-") -> str:
    if value is None:
        return placeholder
    return escape(str(value))


def _num(value: Optional[float], digits: int, suffix: str = "") -> str:
    if value is None:
        return "-"
    return f"{float(value):.{digits}f}{suffix}"


def _when(dt) -> str:
    return escape(dt.isoformat(sep=" ", timespec="seconds")) if dt is not None else ""


def render_strategy_stats(stats: Dict[str, Any]) -> str:
    overall = stats["overall"]
    if not overall["trades"]:
        body = "<p>No completed trades yet (CLOSE signals are needed to compute stats).</p>"
    else:
        body = (
            '<div class="stats">'
            f"<div><b>Trades:</b> {overall['trades']}</div>"
            f"<div><b>Net PnL:</b> {_num(overall['net_pnl'], 4)}</div>"
            f"<div><b>Gross Profit:</b> {_num(overall['gross_profit'], 4)}</div>"
            f"<div><b>Gross Loss:</b> {_num(overall['gross_loss'], 4)}</div>"
            f"<div><b>Profit Factor:</b> {_num(overall['profit_factor'], 3)}</div>"
            f"<div><b>Win Rate:</b> {_num(overall['win_rate_pct'], 2, '%')}</div>"
            f"<div><b>Avg PnL:</b> {_num(overall['avg_pnl'], 4)}</div>"
            "</div>"
        )

    rows = stats["by_symbol_tf"]
    if rows:
        breakdown = "".join(
            '<div class="row">'
            f"<b>{_e(r['symbol'])}</b> ({_e(r['timeframe'], '?')}) [{_e(r['strategy'])}] "
            f"| Trades: {r['trades']} | Net: {_num(r['net_pnl'], 4)} "
            f"| WR: {_num(r['win_rate_pct'], 2, '%')} | PF: {_num(r['profit_factor'], 3)}"
            "</div>"
            for r in rows
        )
    else:
        breakdown = "<p>No breakdown rows yet.</p>"

    return (
        "<section><h2>TradingView Strategy Stats</h2>"
        f"{body}<h3>By Symbol / Timeframe</h3>{breakdown}</section>"
    )


def render_signals(signals: List[TvSignal]) -> str:
    if not signals:
        items = "<p>No signals yet.</p>"
    else:
        items = "".join(
            '<div class="row">'
            f"<b>{_e(s.symbol, '(no symbol)')}</b> - {_e(s.action, '(no action)')} ({_e(s.timeframe, '?')})"
            f'<div class="muted">{_when(s.received_at)}</div>'
            "</div>"
            for s in signals
        )
    return f"<section><h2>TradingView Signals</h2>{items}</section>"


def render_bot(
    snapshot: Optional[BotSnapshot],
    trades: List[BotClosedTrade],
    fills: List[BotFill],
) -> str:
    if snapshot is None:
        snap_html = "<pre>none yet</pre>"
    else:
        doc = {
            "id": snapshot.id,
            "ts": snapshot.ts.isoformat(),
            "equity": snapshot.equity,
            "cash": snapshot.cash,
            "open_pnl": snapshot.open_pnl,
            "realized_pnl": snapshot.realized_pnl,
            "positions_count": snapshot.positions_count,
            "raw": snapshot.raw,
        }
        snap_html = f"<pre>{escape(json.dumps(doc, indent=2, default=str))}</pre>"

    if trades:
        trades_html = "".join(
            '<div class="row">'
            f"<b>{_e(t.symbol)}</b> - {_e(t.side)} qty {_e(t.qty)} | PnL: {_e(t.pnl)}"
            f'<div class="muted">{_when(t.closed_at)}</div>'
            "</div>"
            for t in trades
        )
    else:
        trades_html = "<p>No trades yet.</p>"

    if fills:
        fills_html = "".join(
            '<div class="row">'
            f"<b>{_e(f.symbol)}</b> - {_e(f.event_type)} {_e(f.side)} qty {_e(f.qty)} @ {_e(f.price)}"
            f'<div class="muted">{_when(f.ts)}</div>'
            "</div>"
            for f in fills
        )
    else:
        fills_html = "<p>No fills yet.</p>"

    return (
        "<section><h2>Bot Performance</h2>"
        f"<h3>Latest Snapshot</h3>{snap_html}"
        f"<h3>Recent Trades</h3>{trades_html}"
        f"<h3>Recent Fills</h3>{fills_html}"
        "</section>"
    )


@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(db: AsyncSession = Depends(get_db)):
    async with store_errors(db, "dashboard queries"):
        stats = await signal_stats(db, "all")

        signals = (
            await db.execute(
                select(TvSignal).order_by(TvSignal.received_at.desc(), TvSignal.id.desc()).limit(RECENT_LIMIT)
            )
        ).scalars().all()

        snapshot = (
            await db.execute(
                select(BotSnapshot).order_by(BotSnapshot.ts.desc(), BotSnapshot.id.desc()).limit(1)
            )
        ).scalars().first()

        trades = (
            await db.execute(
                select(BotClosedTrade)
                .order_by(BotClosedTrade.closed_at.desc(), BotClosedTrade.id.desc())
                .limit(RECENT_LIMIT)
            )
        ).scalars().all()

        fills = (
            await db.execute(
                select(BotFill).order_by(BotFill.ts.desc(), BotFill.id.desc()).limit(RECENT_LIMIT)
            )
        ).scalars().all()

    html = (
        "<!doctype html><html><head><meta charset=\"utf-8\"><title>Dashboard</title>"
        f"<style>{_STYLE}</style></head><body><h1>Dashboard</h1>"
        f"{render_strategy_stats(stats)}"
        f"{render_signals(list(signals))}"
        f"{render_bot(snapshot, list(trades), list(fills))}"
        "</body></html>"
    )
    return HTMLResponse(html)
