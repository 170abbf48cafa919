from enum import Enum


class FillEventType(str, Enum):
    OPEN = "OPEN"
    ADD = "ADD"
    TRIM = "TRIM"
    CLOSE = "CLOSE"


class TradeDirection(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"


class SignalAction(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"
    CLOSE = "CLOSE"


# alert type that drives trade state; anything else is stored only
EXECUTION_SIGNAL_TYPE = "EXEC"
