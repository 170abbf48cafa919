from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, Index, Integer, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column

from trading_tracker.db.database import Base


class TvTrade(Base):
    """
    Logical trade built from TradingView LONG/SHORT -> CLOSE alerts.
    Open while exit_time is null.
    """

    __tablename__ = "tv_trades"
    __table_args__ = (
        # at most one open trade per (strategy, symbol, timeframe)
        Index(
            "uq_tv_trades_open_key",
            "strategy",
            "symbol",
            "timeframe",
            unique=True,
            postgresql_where=text("exit_time IS NULL"),
            sqlite_where=text("exit_time IS NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    strategy: Mapped[str] = mapped_column(Text, index=True)
    symbol: Mapped[str] = mapped_column(Text, index=True)
    timeframe: Mapped[str] = mapped_column(Text)
    direction: Mapped[str] = mapped_column(String(8))  # LONG / SHORT

    entry_time: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    entry_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    entry_signal_id: Mapped[str | None] = mapped_column(Text, nullable=True)

    exit_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    exit_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    exit_signal_id: Mapped[str | None] = mapped_column(Text, nullable=True)

    pnl: Mapped[float | None] = mapped_column(Float, nullable=True)
    win: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
