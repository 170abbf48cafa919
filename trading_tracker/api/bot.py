# trading_tracker/api/bot.py

import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import APIRouter, Body, Depends, Header, Query
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from trading_tracker.api.deps import bearer_token, get_http_client, require_token
from trading_tracker.config import Settings, get_settings
from trading_tracker.db.database import get_db
from trading_tracker.errors import ForbiddenError, TrackerError, ValidationError
from trading_tracker.models.enums import FillEventType
from trading_tracker.schemas import first_error_message
from trading_tracker.schemas.fill import FillPayload
from trading_tracker.services.ledger import append_fill, record_closed_trade
from trading_tracker.services.position_differ import event_key
from trading_tracker.services.snapshot_pull import PullResult, pull_snapshot
from trading_tracker.utils.coerce import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bot", tags=["bot"])

CRON_HEADER = "x-vercel-cron"


def _direct_meta(payload: FillPayload, ts: str) -> Dict[str, Any]:
    """Caller meta plus provenance; "source" always reads "fill"."""
    key = event_key([payload.event_type.value, payload.position_id, payload.qty, payload.price, ts])
    return {**(payload.meta or {}), "source": "fill", "dedupe_key": key}


def _pull_response(result: PullResult) -> Dict[str, Any]:
    return {
        "ok": True,
        "inserted": result.summary.model_dump(),
        "derived_fills": result.written,
        "skipped_fills": result.skipped,
    }


async def _run_pull(settings: Settings, db: AsyncSession, client: httpx.AsyncClient) -> Dict[str, Any]:
    if not settings.bot_dashboard_url:
        raise TrackerError("BOT_DASHBOARD_URL missing")

    result = await pull_snapshot(db, client, settings.bot_dashboard_url)
    return _pull_response(result)


# =================================================
# SCHEDULED PULL (token in query string)
# =================================================
@router.get("/pull")
async def pull(
    token: Optional[str] = Query(default=None),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """
    Fetch the bot snapshot, store it, and derive fills from the
    difference with the previous snapshot.
    """
    require_token(token, settings.bot_api_token)
    return await _run_pull(settings, db, client)


# =================================================
# CRON ENTRY POINT (scheduler header, no token)
# =================================================
@router.get("/pull/cron")
async def pull_cron(
    x_vercel_cron: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    if not x_vercel_cron:
        raise ForbiddenError("forbidden")
    return await _run_pull(settings, db, client)


# =================================================
# DIRECT FILL (bearer token)
# =================================================
@router.post("/pull/fill")
async def direct_fill(
    body: Any = Body(default=None),
    authorization: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db),
):
    """
    Append a fill reported directly by the bot.
    CLOSE fills also produce a closed-trade row.
    """
    require_token(bearer_token(authorization), settings.bot_api_token)

    if not isinstance(body, dict):
        raise ValidationError("missing required fields")

    try:
        payload = FillPayload.model_validate(body)
    except PydanticValidationError as exc:
        raise ValidationError(first_error_message(exc)) from exc

    now = utcnow()

    written = await append_fill(
        db,
        ts=now,
        position_id=payload.position_id,
        symbol=payload.symbol,
        side=payload.side,
        event_type=payload.event_type,
        qty=payload.qty,
        price=payload.price,
        realized_pnl=payload.realized_pnl,
        meta=_direct_meta(payload, now.isoformat()),
    )

    closed_trade_id = None
    if payload.event_type is FillEventType.CLOSE:
        closed = await record_closed_trade(
            db,
            closed_at=now,
            symbol=payload.symbol,
            side=payload.side,
            qty=payload.qty,
            exit_price=payload.price,
            pnl=payload.realized_pnl,
        )
        closed_trade_id = closed.id

    return {"ok": True, "written": written, "closed_trade_id": closed_trade_id}
