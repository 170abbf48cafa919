from datetime import datetime

from sqlalchemy import JSON, DateTime, Float, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from trading_tracker.db.database import Base


class TvSignal(Base):
    """
    Raw TradingView alert.
    Stored for every delivery; normalized columns are null when the payload lacks them.
    """

    __tablename__ = "tv_signals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    received_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True,
    )

    type: Mapped[str | None] = mapped_column(Text, nullable=True)
    strategy: Mapped[str | None] = mapped_column(Text, nullable=True)
    symbol: Mapped[str | None] = mapped_column(Text, nullable=True)
    action: Mapped[str | None] = mapped_column(Text, nullable=True)
    timeframe: Mapped[str | None] = mapped_column(Text, nullable=True)
    signal_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    bar_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    price: Mapped[float | None] = mapped_column(Float, nullable=True)

    raw_payload: Mapped[dict | None] = mapped_column(JSON, nullable=True)
