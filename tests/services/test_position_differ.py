from trading_tracker.models.enums import FillEventType
from trading_tracker.services.position_differ import (
    classify_change,
    diff_positions,
    event_key,
    extract_positions,
)


def test_open_from_zero_uses_entry_price():
    prev = {"AAPL": {"qty": 0}}
    curr = {"AAPL": {"qty": 10, "entry_price": 150, "mark": 151, "side": "long"}}

    events = diff_positions(prev, curr)

    assert len(events) == 1
    e = events[0]
    assert e.event_type is FillEventType.OPEN
    assert e.position_id == "AAPL"
    assert e.symbol == "AAPL"
    assert e.qty == 10
    assert e.price == 150
    assert e.side == "long"
    assert e.meta["source"] == "pull"


def test_open_without_entry_price_falls_back_to_mark():
    events = diff_positions({}, {"MSFT": {"qty": "3", "mark": "402.5"}})

    assert [(e.event_type, e.qty, e.price) for e in events] == [(FillEventType.OPEN, 3.0, 402.5)]


def test_close_uses_mark_and_previous_qty():
    prev = {"AAPL": {"qty": 10, "entry_price": 150, "side": "long", "entry_time": "t0"}}
    curr = {"AAPL": {"qty": 0, "mark": 155}}

    events = diff_positions(prev, curr)

    assert len(events) == 1
    e = events[0]
    assert e.event_type is FillEventType.CLOSE
    assert e.qty == 10
    assert e.price == 155
    assert e.side == "long"
    assert e.meta["prev_entry_time"] == "t0"


def test_close_when_key_disappears_uses_previous_mark():
    prev = {"SPY": {"qty": 2, "entry_price": 500, "mark": 505}}

    events = diff_positions(prev, {})

    assert [(e.event_type, e.qty, e.price) for e in events] == [(FillEventType.CLOSE, 2.0, 505.0)]


def test_add_and_trim_delta_is_absolute():
    prev = {"A": {"qty": 5, "mark": 10}, "B": {"qty": 8, "mark": 20}}
    curr = {"A": {"qty": 7, "mark": 11}, "B": {"qty": 3, "mark": 19}}

    events = {e.position_id: e for e in diff_positions(prev, curr)}

    assert events["A"].event_type is FillEventType.ADD
    assert events["A"].qty == 2
    assert events["A"].price == 11
    assert events["A"].meta["prev_qty"] == 5
    assert events["A"].meta["curr_qty"] == 7

    assert events["B"].event_type is FillEventType.TRIM
    assert events["B"].qty == 5
    assert events["B"].price == 19


def test_unchanged_and_flat_positions_emit_nothing():
    prev = {"A": {"qty": 4}, "FLAT": {"qty": 0}, "GONE": {"qty": 0}}
    curr = {"A": {"qty": 4.0}, "FLAT": {"qty": 0}, "NEW_FLAT": {"qty": None}}

    assert diff_positions(prev, curr) == []


def test_malformed_quantities_coerce_to_zero():
    # qty "abc" counts as 0, so this is an OPEN of nothing -> no event
    assert diff_positions({}, {"X": {"qty": "abc", "entry_price": 1}}) == []

    # previous garbage qty + real current qty -> OPEN
    events = diff_positions({"X": {"qty": "abc"}}, {"X": {"qty": 2, "entry_price": "n/a", "mark": 9}})
    assert [(e.event_type, e.qty, e.price) for e in events] == [(FillEventType.OPEN, 2.0, 9.0)]


def test_non_numeric_prices_become_none():
    events = diff_positions({}, {"X": {"qty": 1, "entry_price": "abc", "mark": None}})

    assert events[0].price is None


def test_option_symbol_preferred_over_key():
    prev = {"SPY": {"qty": 0}}
    curr = {"SPY": {"qty": 1, "option_symbol": "SPY240119C00480000", "entry_price": 2.5}}

    events = diff_positions(prev, curr)
    assert events[0].position_id == "SPY240119C00480000"
    assert events[0].symbol == "SPY240119C00480000"

    # after close the contract id comes from the previous snapshot
    events = diff_positions(curr, {})
    assert events[0].position_id == "SPY240119C00480000"
    assert events[0].event_type is FillEventType.CLOSE


def test_non_mapping_entries_are_treated_as_absent():
    events = diff_positions({"A": "junk"}, {"A": {"qty": 1, "entry_price": 5}, "B": 42})

    assert [(e.position_id, e.event_type) for e in events] == [("A", FillEventType.OPEN)]


def test_classify_change_table():
    assert classify_change(0, 5) is FillEventType.OPEN
    assert classify_change(5, 0) is FillEventType.CLOSE
    assert classify_change(5, 9) is FillEventType.ADD
    assert classify_change(9, 5) is FillEventType.TRIM
    assert classify_change(5, 5) is None
    assert classify_change(0, 0) is None


def test_extract_positions_tolerates_bad_documents():
    assert extract_positions(None) == {}
    assert extract_positions({"data": []}) == {}
    assert extract_positions({"data": {"positions": []}}) == {}
    assert extract_positions({"data": {"positions": {"A": {"qty": 1}}}}) == {"A": {"qty": 1}}


def test_dedupe_key_string():
    events = diff_positions({}, {"AAPL": {"qty": 10, "entry_price": 150}})

    assert events[0].dedupe_key("2024-01-01T10:00:00Z") == "OPEN|AAPL|10|150|2024-01-01T10:00:00Z"
    assert event_key(["CLOSE", "X", 1.5, None, "t"]) == "CLOSE|X|1.5||t"
