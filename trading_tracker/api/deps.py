import hmac
import logging
from typing import AsyncIterator, Optional

import httpx
from fastapi import Depends

from trading_tracker.config import Settings, get_settings
from trading_tracker.errors import AuthError

logger = logging.getLogger(__name__)


def tokens_match(given: Optional[str], expected: Optional[str]) -> bool:
    """Constant-time compare; an unset expected token never matches."""
    expected = (expected or "").strip()
    given = (given or "").strip()
    if not expected:
        return False
    return hmac.compare_digest(given.encode(), expected.encode())


def bearer_token(authorization: Optional[str]) -> str:
    auth = authorization or ""
    return auth[7:].strip() if auth.startswith("Bearer ") else ""


def require_token(given: Optional[str], expected: Optional[str], message: str = "unauthorized") -> None:
    if not tokens_match(given, expected):
        logger.warning("rejected request: %s", message)
        raise AuthError(message)


async def get_http_client(settings: Settings = Depends(get_settings)) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(timeout=settings.bot_fetch_timeout) as client:
        yield client
