from dataclasses import replace

import pytest
from sqlalchemy import select

from trading_tracker.config import get_settings
from trading_tracker.main import app
from trading_tracker.models.signal import TvSignal
from trading_tracker.models.tv_trade import TvTrade

TV_TOKEN = "tv-token"
URL = "/api/webhooks/tradingview"


async def _all(session, model):
    return (await session.execute(select(model).order_by(model.id))).scalars().all()


def _alert(action, price):
    return {
        "type": "EXEC",
        "strategy": "breakout",
        "symbol": "BTCUSDT",
        "timeframe": "15",
        "action": action,
        "price": price,
    }


@pytest.mark.asyncio
async def test_bad_token_stores_nothing(client, async_session):
    r = await client.post(URL, params={"token": "wrong"}, json=_alert("LONG", 1))

    assert r.status_code == 401
    assert r.json() == {"ok": False, "error": "bad token"}
    assert await _all(async_session, TvSignal) == []


@pytest.mark.asyncio
async def test_long_then_close_round_trip(client, async_session):
    r1 = await client.post(URL, params={"token": TV_TOKEN}, json=_alert("LONG", 100))
    r2 = await client.post(URL, params={"token": TV_TOKEN}, json=_alert("LONG", 101))
    r3 = await client.post(URL, params={"token": TV_TOKEN}, json=_alert("CLOSE", 110))
    r4 = await client.post(URL, params={"token": TV_TOKEN}, json=_alert("CLOSE", 111))

    assert [r.json()["trade"] for r in (r1, r2, r3, r4)] == ["opened", "noop", "closed", "noop"]
    assert all(r.json()["ok"] is True for r in (r1, r2, r3, r4))

    (trade,) = await _all(async_session, TvTrade)
    assert trade.pnl == 10
    assert trade.win is True
    assert len(await _all(async_session, TvSignal)) == 4


@pytest.mark.asyncio
async def test_unparsable_body_is_still_stored(client, async_session):
    r = await client.post(
        URL,
        params={"token": TV_TOKEN},
        content=b"BTCUSDT crossed up",
        headers={"content-type": "text/plain"},
    )

    assert r.status_code == 200
    assert r.json()["trade"] == "skipped"

    (signal,) = await _all(async_session, TvSignal)
    assert signal.raw_payload == {"_unparsed": "BTCUSDT crossed up"}
    assert signal.symbol is None


@pytest.mark.asyncio
async def test_body_secret_when_configured(client, async_session, settings):
    app.dependency_overrides[get_settings] = lambda: replace(settings, tradingview_webhook_secret="s3cret")

    bad = await client.post(URL, params={"token": TV_TOKEN}, json={**_alert("LONG", 1), "secret": "nope"})
    good = await client.post(URL, params={"token": TV_TOKEN}, json={**_alert("LONG", 1), "secret": "s3cret"})

    assert bad.status_code == 401
    assert bad.json()["error"] == "bad secret"
    assert good.status_code == 200
    assert good.json()["trade"] == "opened"
    assert len(await _all(async_session, TvSignal)) == 1
