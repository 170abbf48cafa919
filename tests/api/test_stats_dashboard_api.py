import pytest

TV_TOKEN = "tv-token"
BOT_TOKEN = "bot-token"


async def _trade(client, action, price, symbol="BTCUSDT"):
    return await client.post(
        "/api/webhooks/tradingview",
        params={"token": TV_TOKEN},
        json={"type": "EXEC", "symbol": symbol, "timeframe": "15", "action": action, "price": price},
    )


@pytest.mark.asyncio
async def test_signal_stats_endpoint(client):
    await _trade(client, "LONG", 100)
    await _trade(client, "CLOSE", 110)
    await _trade(client, "SHORT", 50, symbol="ETHUSDT")
    await _trade(client, "CLOSE", 55, symbol="ETHUSDT")

    r = await client.get("/api/stats/signals", params={"window": "7d"})

    body = r.json()
    assert r.status_code == 200
    assert body["ok"] is True
    assert body["window"] == "7d"
    assert body["overall"]["trades"] == 2
    assert body["overall"]["net_pnl"] == 5.0
    assert body["overall"]["profit_factor"] == 2.0
    assert {row["symbol"] for row in body["by_symbol_tf"]} == {"BTCUSDT", "ETHUSDT"}


@pytest.mark.asyncio
async def test_unknown_window_is_400(client):
    r = await client.get("/api/stats/signals", params={"window": "forever"})

    assert r.status_code == 400
    assert r.json()["ok"] is False


@pytest.mark.asyncio
async def test_bot_stats_empty(client):
    r = await client.get("/api/stats/bot")

    assert r.status_code == 200
    assert r.json()["overall"]["trades"] == 0
    assert r.json()["latest_snapshot"] is None


@pytest.mark.asyncio
async def test_ping(client):
    r = await client.get("/api/ping")

    assert r.status_code == 200
    assert r.json() == {"ok": True, "error": None, "data": []}


@pytest.mark.asyncio
async def test_dashboard_placeholders_when_empty(client):
    r = await client.get("/dashboard")

    assert r.status_code == 200
    assert "text/html" in r.headers["content-type"]
    assert "No completed trades yet" in r.text
    assert "No signals yet." in r.text
    assert "none yet" in r.text
    assert "No trades yet." in r.text


@pytest.mark.asyncio
async def test_dashboard_renders_data_escaped(client, fake_bot):
    await _trade(client, "LONG", 100, symbol="<b>BAD</b>")
    await _trade(client, "CLOSE", 110, symbol="<b>BAD</b>")

    fake_bot.set_positions("2024-01-01T10:00:00Z", {"AAPL": {"qty": 3, "entry_price": 9}}, equity=1234.5)
    await client.get("/api/bot/pull", params={"token": BOT_TOKEN})

    r = await client.get("/dashboard")

    assert "&lt;b&gt;BAD&lt;/b&gt;" in r.text
    assert "<b>BAD</b>" not in r.text
    assert "1234.5" in r.text
    assert "No signals yet." not in r.text
    assert "AAPL" in r.text
