import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from trading_tracker.api.deps import require_token, tokens_match
from trading_tracker.config import Settings, get_settings
from trading_tracker.db.database import get_db
from trading_tracker.errors import AuthError
from trading_tracker.services.signal_ingest import ingest_signal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])


def _decode_body(raw: bytes) -> Any:
    """
    Alert bodies are JSON, but TradingView will deliver whatever the alert
    message contains. Undecodable bodies are kept as {"_unparsed": text}.
    """
    text = raw.decode("utf-8", errors="replace")
    if not text.strip():
        return {}
    try:
        return json.loads(text)
    except ValueError:
        return {"_unparsed": text}


@router.post("/tradingview")
async def tradingview_webhook(
    request: Request,
    token: Optional[str] = Query(default=None),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db),
):
    require_token(token, settings.tradingview_webhook_token, message="bad token")

    payload = _decode_body(await request.body())

    if settings.tradingview_webhook_secret:
        given = payload.get("secret") if isinstance(payload, dict) else None
        if not tokens_match(given if isinstance(given, str) else None, settings.tradingview_webhook_secret):
            logger.warning("rejected tradingview alert: bad secret")
            raise AuthError("bad secret")

    result = await ingest_signal(db, payload)

    return {
        "ok": True,
        "signal_id": result.signal_id,
        "trade": result.outcome.value,
        "trade_id": result.trade.id if result.trade is not None else None,
    }
