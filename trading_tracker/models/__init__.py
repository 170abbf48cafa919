# trading_tracker/models/__init__.py
# Central import registry for Alembic

from trading_tracker.models.snapshot import BotSnapshot
from trading_tracker.models.fill import BotFill
from trading_tracker.models.closed_trade import BotClosedTrade
from trading_tracker.models.signal import TvSignal
from trading_tracker.models.tv_trade import TvTrade

__all__ = ["BotSnapshot", "BotFill", "BotClosedTrade", "TvSignal", "TvTrade"]
