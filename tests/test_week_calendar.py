import pytest

from engine.week_calendar import (
    WeekKey,
    WeekRangeError,
    compare,
    enumerate_weeks,
    in_range,
    next_week,
    parse_week_code,
    prev_week,
    validate_range,
    week_code,
    week_span,
)


def test_ordering_is_lexicographic_on_year_then_week():
    assert WeekKey(2025, 52) < WeekKey(2026, 1)
    assert WeekKey(2025, 47) < WeekKey(2025, 48)
    assert compare(WeekKey(2025, 10), WeekKey(2025, 10)) == 0
    assert compare(WeekKey(2026, 1), WeekKey(2025, 53)) == 1
    assert compare(WeekKey(2024, 53), WeekKey(2025, 1)) == -1


def test_in_range_is_inclusive():
    start, end = WeekKey(2025, 47), WeekKey(2025, 49)
    assert in_range(WeekKey(2025, 47), start, end)
    assert in_range(WeekKey(2025, 49), start, end)
    assert not in_range(WeekKey(2025, 46), start, end)
    assert not in_range(WeekKey(2025, 50), start, end)


def test_enumerate_weeks_crosses_year_boundary_via_week_53():
    weeks = list(enumerate_weeks(WeekKey(2025, 52), WeekKey(2026, 2)))
    assert weeks == [
        WeekKey(2025, 52),
        WeekKey(2025, 53),
        WeekKey(2026, 1),
        WeekKey(2026, 2),
    ]


def test_enumerate_weeks_empty_when_start_after_end():
    assert list(enumerate_weeks(WeekKey(2025, 50), WeekKey(2025, 48))) == []
    assert len(enumerate_weeks(WeekKey(2025, 50), WeekKey(2025, 48))) == 0


def test_enumerate_weeks_is_restartable():
    rng = enumerate_weeks(WeekKey(2025, 47), WeekKey(2025, 49))
    assert list(rng) == list(rng)
    assert len(rng) == 3
    assert WeekKey(2025, 48) in rng
    assert WeekKey(2025, 50) not in rng


def test_enumerated_weeks_agree_with_in_range():
    start, end = WeekKey(2024, 50), WeekKey(2025, 3)
    weeks = list(enumerate_weeks(start, end))
    assert all(in_range(w, start, end) for w in weeks)
    assert len(weeks) == week_span(start, end)


def test_next_and_prev_week_wrap():
    assert next_week(WeekKey(2025, 53)) == WeekKey(2026, 1)
    assert prev_week(WeekKey(2026, 1)) == WeekKey(2025, 53)
    assert next_week(WeekKey(2025, 10)) == WeekKey(2025, 11)


@pytest.mark.parametrize("week", [0, 54, -1])
def test_week_out_of_bounds_is_rejected(week):
    with pytest.raises(WeekRangeError):
        WeekKey(2025, week)


def test_validate_range_rejects_reversed_and_missing():
    with pytest.raises(WeekRangeError):
        validate_range(WeekKey(2025, 50), WeekKey(2025, 48))
    with pytest.raises(WeekRangeError, match="required"):
        validate_range(None, WeekKey(2025, 48))
    assert validate_range(WeekKey(2025, 48), WeekKey(2025, 48)) == (
        WeekKey(2025, 48),
        WeekKey(2025, 48),
    )


def test_week_code_format_and_parse():
    assert week_code(WeekKey(2025, 7)) == "2025-W07"
    assert str(WeekKey(2025, 47)) == "2025-W47"
    assert parse_week_code("2025-W07") == WeekKey(2025, 7)
    with pytest.raises(WeekRangeError):
        parse_week_code("2025/07")
