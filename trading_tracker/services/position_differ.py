# trading_tracker/services/position_differ.py

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from trading_tracker.models.enums import FillEventType
from trading_tracker.utils.coerce import as_num, clean_str, num0


@dataclass
class PositionEvent:
    position_id: str
    symbol: str
    side: Optional[str]
    event_type: FillEventType
    qty: float
    price: Optional[float]
    meta: Dict[str, Any] = field(default_factory=dict)

    def dedupe_key(self, ts: str) -> str:
        """Audit string only; the ledger dedups on (position_id, event_type, ts)."""
        return event_key([self.event_type.value, self.position_id, self.qty, self.price, ts])


def _fmt(part: Any) -> str:
    if part is None:
        return ""
    if isinstance(part, float) and part.is_integer():
        return str(int(part))
    return str(part)


def event_key(parts: Iterable[Any]) -> str:
    return "|".join(_fmt(p) for p in parts)


def extract_positions(document: Any) -> Dict[str, Any]:
    """
    Pull the positions map out of an upstream snapshot document
    ({ok, ts, data: {positions: {...}}}). Anything unexpected is an empty map.
    """
    if not isinstance(document, Mapping):
        return {}
    data = document.get("data")
    if not isinstance(data, Mapping):
        return {}
    positions = data.get("positions")
    return dict(positions) if isinstance(positions, Mapping) else {}


def _entry(positions: Mapping[str, Any], key: str) -> Optional[Mapping[str, Any]]:
    value = positions.get(key)
    return value if isinstance(value, Mapping) else None


def _first_num(*candidates: Any) -> Optional[float]:
    for c in candidates:
        n = as_num(c)
        if n is not None:
            return n
    return None


def _first_str(*candidates: Any) -> Optional[str]:
    for c in candidates:
        s = clean_str(c)
        if s is not None:
            return s
    return None


def _get(pos: Optional[Mapping[str, Any]], name: str) -> Any:
    return pos.get(name) if pos is not None else None


def classify_change(prev_qty: float, curr_qty: float) -> Optional[FillEventType]:
    if prev_qty == 0 and curr_qty > 0:
        return FillEventType.OPEN
    if prev_qty > 0 and curr_qty == 0:
        return FillEventType.CLOSE
    if prev_qty > 0 and curr_qty > 0 and curr_qty != prev_qty:
        return FillEventType.ADD if curr_qty > prev_qty else FillEventType.TRIM
    return None


def diff_positions(
    previous: Mapping[str, Any],
    current: Mapping[str, Any],
) -> List[PositionEvent]:
    """
    Compare two position maps (symbol key -> position dict) and classify
    each key as OPEN / ADD / TRIM / CLOSE. Unchanged and flat keys emit nothing.

    Rules:
    - qty absent / non-numeric -> 0
    - OPEN prices at entry_price (fallback mark), everything else at mark (fallback entry_price)
    - option_symbol wins over the map key so option contracts stay distinct
    - never raises on malformed positions
    """
    previous = previous if isinstance(previous, Mapping) else {}
    current = current if isinstance(current, Mapping) else {}

    events: List[PositionEvent] = []

    # prev keys first, then new ones, in first-seen order
    keys = dict.fromkeys([*previous.keys(), *current.keys()])

    for key in keys:
        prev = _entry(previous, key)
        curr = _entry(current, key)

        prev_qty = num0(_get(prev, "qty"))
        curr_qty = num0(_get(curr, "qty"))

        event_type = classify_change(prev_qty, curr_qty)
        if event_type is None:
            continue

        symbol = _first_str(_get(curr, "option_symbol"), _get(prev, "option_symbol")) or str(key)
        side = _first_str(_get(curr, "side"), _get(prev, "side"))

        entry_price = _first_num(_get(curr, "entry_price"), _get(prev, "entry_price"))
        mark_price = _first_num(_get(curr, "mark"), _get(prev, "mark"))

        if event_type is FillEventType.OPEN:
            qty = curr_qty
            price = entry_price if entry_price is not None else mark_price
            meta = {
                "source": "pull",
                "entry_time": _get(curr, "entry_time"),
                "tv_close_hint": _get(curr, "tv_close_hint"),
            }
        elif event_type is FillEventType.CLOSE:
            qty = prev_qty
            price = mark_price if mark_price is not None else entry_price
            meta = {
                "source": "pull",
                "tv_close_hint": _get(prev, "tv_close_hint"),
                "prev_entry_time": _get(prev, "entry_time"),
            }
        else:
            qty = abs(curr_qty - prev_qty)
            price = mark_price if mark_price is not None else entry_price
            meta = {"source": "pull", "prev_qty": prev_qty, "curr_qty": curr_qty}

        events.append(
            PositionEvent(
                position_id=symbol,
                symbol=symbol,
                side=side,
                event_type=event_type,
                qty=qty,
                price=price,
                meta=meta,
            )
        )

    return events
