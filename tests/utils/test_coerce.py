from datetime import datetime, timezone

from trading_tracker.utils.coerce import (
    as_num,
    clean_str,
    num0,
    parse_timestamp,
    timestamp_or_now,
    upper_str,
)


def test_as_num_accepts_numbers_and_numeric_strings():
    assert as_num(5) == 5.0
    assert as_num(" 12.5 ") == 12.5
    assert as_num("1e3") == 1000.0


def test_as_num_rejects_everything_else():
    for value in (None, "", "   ", "abc", True, float("nan"), float("inf"), {}, []):
        assert as_num(value) is None


def test_num0_defaults_to_zero():
    assert num0("abc") == 0.0
    assert num0(None) == 0.0
    assert num0("7") == 7.0


def test_string_normalization():
    assert clean_str("  BTCUSDT ") == "BTCUSDT"
    assert clean_str("   ") is None
    assert clean_str(None) is None
    assert clean_str(15) == "15"
    assert upper_str(" long ") == "LONG"
    assert upper_str("") is None


def test_parse_timestamp_formats():
    expected = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)

    assert parse_timestamp("2024-01-01T10:00:00Z") == expected
    assert parse_timestamp("2024-01-01T10:00:00") == expected
    assert parse_timestamp(expected.timestamp()) == expected
    assert parse_timestamp(int(expected.timestamp() * 1000)) == expected
    assert parse_timestamp(str(int(expected.timestamp()))) == expected


def test_parse_timestamp_garbage_is_none():
    assert parse_timestamp("not a time") is None
    assert parse_timestamp("") is None
    assert parse_timestamp(None) is None


def test_timestamp_or_now_falls_back():
    now = datetime(2025, 5, 5, tzinfo=timezone.utc)
    assert timestamp_or_now("garbage", now=now) == now
    assert timestamp_or_now(None, now=now) == now
