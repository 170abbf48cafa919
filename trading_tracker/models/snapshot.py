from datetime import datetime

from sqlalchemy import JSON, DateTime, Float, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from trading_tracker.db.database import Base


class BotSnapshot(Base):
    __tablename__ = "bot_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    ts: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)

    cash: Mapped[float | None] = mapped_column(Float, nullable=True)
    equity: Mapped[float | None] = mapped_column(Float, nullable=True)
    open_pnl: Mapped[float | None] = mapped_column(Float, nullable=True)
    realized_pnl: Mapped[float | None] = mapped_column(Float, nullable=True)
    positions_count: Mapped[int] = mapped_column(Integer, default=0)

    # full upstream document, positions included
    raw: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
