from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from trading_tracker.db.database import get_db
from trading_tracker.models.signal import TvSignal

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/ping")
async def ping(db: AsyncSession = Depends(get_db)):
    """Store round-trip; reports the error instead of failing."""
    try:
        result = await db.execute(select(TvSignal.id).limit(1))
        data = [{"id": row_id} for row_id in result.scalars().all()]
    except SQLAlchemyError as exc:
        return {"ok": False, "error": str(getattr(exc, "orig", None) or exc), "data": None}
    return {"ok": True, "error": None, "data": data}
