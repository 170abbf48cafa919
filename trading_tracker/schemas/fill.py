from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from trading_tracker.models.enums import FillEventType
from trading_tracker.utils.coerce import as_num, clean_str, upper_str

REQUIRED_FIELDS = ("position_id", "symbol", "event_type")


class FillPayload(BaseModel):
    """Direct fill reported by the bot (bypasses the position differ)."""

    model_config = ConfigDict(extra="ignore")

    position_id: Optional[str] = None
    symbol: Optional[str] = None
    side: Optional[str] = None
    event_type: Optional[FillEventType] = None  # OPEN | ADD | TRIM | CLOSE
    qty: Optional[float] = None
    price: Optional[float] = None
    realized_pnl: Optional[float] = None
    meta: Optional[Dict[str, Any]] = None

    @field_validator("position_id", "symbol", "side", mode="before")
    @classmethod
    def _trimmed(cls, v):
        return clean_str(v)

    @field_validator("event_type", mode="before")
    @classmethod
    def _event_type(cls, v):
        return upper_str(v)

    @field_validator("qty", "price", "realized_pnl", mode="before")
    @classmethod
    def _lenient_number(cls, v):
        return as_num(v)

    @field_validator("meta", mode="before")
    @classmethod
    def _meta_object(cls, v):
        return v if isinstance(v, dict) else None

    @model_validator(mode="after")
    def _required(self):
        missing = [name for name in REQUIRED_FIELDS if getattr(self, name) is None]
        if missing:
            raise ValueError(f"missing required fields: {', '.join(missing)}")
        return self
