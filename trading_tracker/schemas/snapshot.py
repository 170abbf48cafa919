from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from trading_tracker.utils.coerce import as_num, parse_timestamp


class SnapshotData(BaseModel):
    model_config = ConfigDict(extra="allow")

    cash: Optional[float] = None
    equity: Optional[float] = None
    open_pnl: Optional[float] = None
    realized_pnl: Optional[float] = None
    positions: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("cash", "equity", "open_pnl", "realized_pnl", mode="before")
    @classmethod
    def _lenient_number(cls, v):
        return as_num(v)

    @field_validator("positions", mode="before")
    @classmethod
    def _positions_map(cls, v):
        # positions is an object keyed by symbol; anything else counts as none
        return v if isinstance(v, dict) else {}


class SnapshotDocument(BaseModel):
    """Upstream bot document: {ok, ts, data: {...}}."""

    model_config = ConfigDict(extra="allow")

    ok: bool = False
    ts: Optional[datetime] = None
    data: SnapshotData = Field(default_factory=SnapshotData)

    @field_validator("ok", mode="before")
    @classmethod
    def _strict_ok(cls, v):
        return v is True

    @field_validator("ts", mode="before")
    @classmethod
    def _lenient_ts(cls, v):
        return parse_timestamp(v)

    @field_validator("data", mode="before")
    @classmethod
    def _data_object(cls, v):
        return v if isinstance(v, dict) else {}


class SnapshotSummary(BaseModel):
    equity: Optional[float] = None
    cash: Optional[float] = None
    open_pnl: Optional[float] = None
    realized_pnl: Optional[float] = None
    positions_count: int = 0
