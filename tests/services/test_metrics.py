import pytest
from datetime import datetime, timedelta, timezone

from trading_tracker.errors import ValidationError
from trading_tracker.models.tv_trade import TvTrade
from trading_tracker.services.metrics import compute_trade_stats, signal_stats, window_start


def test_compute_trade_stats():
    stats = compute_trade_stats([10.0, -5.0, 20.0, 0.0, None])

    assert stats["trades"] == 4
    assert stats["wins"] == 2
    assert stats["losses"] == 1
    assert stats["breakeven"] == 1
    assert stats["net_pnl"] == 25.0
    assert stats["gross_profit"] == 30.0
    assert stats["gross_loss"] == 5.0
    assert stats["profit_factor"] == 6.0
    assert stats["win_rate_pct"] == 50.0
    assert stats["avg_pnl"] == 6.25


def test_compute_trade_stats_empty_and_no_losses():
    empty = compute_trade_stats([])
    assert empty["trades"] == 0
    assert empty["win_rate_pct"] is None
    assert empty["avg_pnl"] is None
    assert empty["profit_factor"] is None

    winners = compute_trade_stats([1.0, 2.0])
    assert winners["profit_factor"] is None
    assert winners["win_rate_pct"] == 100.0


def test_window_start():
    now = datetime(2024, 1, 10, tzinfo=timezone.utc)
    assert window_start("all", now) is None
    assert window_start("7d", now) == datetime(2024, 1, 3, tzinfo=timezone.utc)

    with pytest.raises(ValidationError):
        window_start("2w", now)


def _closed(strategy, symbol, timeframe, pnl, exit_time):
    return TvTrade(
        strategy=strategy,
        symbol=symbol,
        timeframe=timeframe,
        direction="LONG",
        entry_time=exit_time - timedelta(hours=1),
        entry_price=100.0,
        exit_time=exit_time,
        exit_price=100.0 + pnl,
        pnl=pnl,
        win=pnl > 0,
    )


@pytest.mark.asyncio
async def test_signal_stats_groups_and_windows(async_session):
    now = datetime.now(timezone.utc)
    async_session.add_all(
        [
            _closed("s", "BTC", "15", 10.0, now - timedelta(hours=2)),
            _closed("s", "BTC", "15", -4.0, now - timedelta(days=3)),
            _closed("s", "ETH", "60", 6.0, now - timedelta(days=20)),
            # still open: never counted
            TvTrade(strategy="s", symbol="SOL", timeframe="5", direction="SHORT", entry_time=now, entry_price=1.0),
        ]
    )
    await async_session.commit()

    everything = await signal_stats(async_session, "all")
    assert everything["overall"]["trades"] == 3
    assert everything["overall"]["net_pnl"] == 12.0
    assert [(r["symbol"], r["trades"]) for r in everything["by_symbol_tf"]] == [("BTC", 2), ("ETH", 1)]

    week = await signal_stats(async_session, "7d")
    assert week["overall"]["trades"] == 2

    day = await signal_stats(async_session, "1d")
    assert day["overall"]["trades"] == 1
    assert day["overall"]["win_rate_pct"] == 100.0
