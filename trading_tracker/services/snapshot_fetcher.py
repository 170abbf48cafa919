"""
Snapshot Fetcher

Pulls the bot's dashboard document:
    {"ok": true, "ts": "...", "data": {"cash", "equity", "open_pnl", "realized_pnl", "positions": {...}}}
"""
import logging
from typing import Any, Dict

import httpx

from trading_tracker.errors import UpstreamError
from trading_tracker.schemas.snapshot import SnapshotDocument

logger = logging.getLogger(__name__)


async def fetch_snapshot(client: httpx.AsyncClient, url: str) -> Dict[str, Any]:
    """
    GET the upstream snapshot. Raises UpstreamError on transport failure,
    non-JSON bodies, non-2xx status, or ok != true. No retries.
    """
    try:
        response = await client.get(url, headers={"cache-control": "no-store"})
    except httpx.HTTPError as exc:
        logger.warning("bot fetch failed: %s", exc)
        raise UpstreamError(f"bot fetch failed: {exc}") from exc

    try:
        document = response.json()
    except ValueError:
        logger.warning("bot returned non-json (status %s)", response.status_code)
        raise UpstreamError("bot returned non-json", body=response.text)

    ok = isinstance(document, dict) and SnapshotDocument.model_validate(document).ok
    if not response.is_success or not ok:
        logger.warning("bot fetch failed: status=%s", response.status_code)
        raise UpstreamError(f"bot fetch failed: {response.status_code}", body=document)

    return document
