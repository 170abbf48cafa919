import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from trading_tracker.api import bot as bot_router
from trading_tracker.api import dashboard as dashboard_router
from trading_tracker.api import ping as ping_router
from trading_tracker.api import stats as stats_router
from trading_tracker.api import webhooks as webhooks_router
from trading_tracker.config import get_settings
from trading_tracker.db.database import Base, engine
from trading_tracker.errors import TrackerError
import trading_tracker.models  # noqa: F401  registers tables on Base.metadata

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Trading Tracker API")

app.include_router(bot_router.router)
app.include_router(webhooks_router.router)
app.include_router(stats_router.router)
app.include_router(ping_router.router)
app.include_router(dashboard_router.router)


@app.exception_handler(TrackerError)
async def tracker_error_handler(request: Request, exc: TrackerError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = str(errors[0].get("msg")) if errors else "invalid request"
    logger.warning("%s %s -> 400: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=400, content={"ok": False, "error": message})


@app.middleware("http")
async def unexpected_errors(request: Request, call_next):
    """Last resort: any unhandled exception still answers with the JSON envelope."""
    try:
        return await call_next(request)
    except Exception as exc:
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"ok": False, "error": str(exc) or "unknown error"})


@app.on_event("startup")
async def on_startup():
    """
    Create DB tables on startup (development convenience).
    For production use Alembic migrations instead.
    """
    if not settings.create_tables_on_startup:
        return
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database tables ensured (create_all)")
