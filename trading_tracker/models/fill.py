from datetime import datetime

from sqlalchemy import JSON, DateTime, Float, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from trading_tracker.db.database import Base


class BotFill(Base):
    __tablename__ = "bot_fills"
    __table_args__ = (
        # dedup key: one fill per position/event/snapshot timestamp
        UniqueConstraint("position_id", "event_type", "ts", name="uq_bot_fills_dedup"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    ts: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)

    position_id: Mapped[str] = mapped_column(String(128), index=True)
    symbol: Mapped[str] = mapped_column(String(128))
    side: Mapped[str | None] = mapped_column(String(16), nullable=True)
    event_type: Mapped[str] = mapped_column(String(8))  # OPEN / ADD / TRIM / CLOSE

    qty: Mapped[float | None] = mapped_column(Float, nullable=True)
    price: Mapped[float | None] = mapped_column(Float, nullable=True)
    realized_pnl: Mapped[float | None] = mapped_column(Float, nullable=True)

    meta: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
