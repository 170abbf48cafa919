from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from trading_tracker.models.enums import EXECUTION_SIGNAL_TYPE, SignalAction
from trading_tracker.utils.coerce import as_num, clean_str, parse_timestamp, upper_str

DEFAULT_STRATEGY = "default"


class SignalPayload(BaseModel):
    """
    Normalized TradingView alert.
    Every field is optional here; the raw body is stored regardless.
    """

    model_config = ConfigDict(extra="allow")

    type: Optional[str] = None
    secret: Optional[str] = None
    strategy: Optional[str] = None
    symbol: Optional[str] = None
    timeframe: Optional[str] = None
    action: Optional[str] = None
    signal_id: Optional[str] = None
    bar_time: Optional[datetime] = None
    price: Optional[float] = None

    @field_validator("secret", "strategy", "symbol", "timeframe", "signal_id", mode="before")
    @classmethod
    def _trimmed(cls, v):
        return clean_str(v)

    @field_validator("type", "action", mode="before")
    @classmethod
    def _upper(cls, v):
        return upper_str(v)

    @field_validator("price", mode="before")
    @classmethod
    def _lenient_number(cls, v):
        return as_num(v)

    @field_validator("bar_time", mode="before")
    @classmethod
    def _lenient_ts(cls, v):
        return parse_timestamp(v)

    @property
    def strategy_key(self) -> str:
        return self.strategy or DEFAULT_STRATEGY

    @property
    def signal_action(self) -> Optional[SignalAction]:
        try:
            return SignalAction(self.action) if self.action else None
        except ValueError:
            return None

    @property
    def is_execution(self) -> bool:
        """EXEC alerts with symbol, timeframe and a LONG/SHORT/CLOSE action drive trade state."""
        return (
            self.type == EXECUTION_SIGNAL_TYPE
            and bool(self.symbol)
            and bool(self.timeframe)
            and self.signal_action is not None
        )
