from datetime import datetime

from sqlalchemy import DateTime, Float, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from trading_tracker.db.database import Base


class BotClosedTrade(Base):
    __tablename__ = "bot_trades_closed"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    closed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)

    symbol: Mapped[str] = mapped_column(String(128), index=True)
    side: Mapped[str | None] = mapped_column(String(16), nullable=True)
    qty: Mapped[float | None] = mapped_column(Float, nullable=True)

    entry_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    exit_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    pnl: Mapped[float | None] = mapped_column(Float, nullable=True)
    fees: Mapped[float] = mapped_column(Float, default=0.0)

    strategy: Mapped[str | None] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
