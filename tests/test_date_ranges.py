from datetime import date, datetime, timedelta, timezone

import pytest

import date_ranges
from date_ranges import InvalidDateFormat, InvalidRange, UTC


def utc(*args):
    return datetime(*args, tzinfo=UTC)


def test_single_day_covers_whole_utc_day():
    r = date_ranges.single_day('2025-01-15')
    assert r.start == utc(2025, 1, 15, 0, 0, 0)
    assert r.end == utc(2025, 1, 15, 23, 59, 59, 999000)
    assert r.start_iso() == '2025-01-15T00:00:00.000Z'
    assert r.end_iso() == '2025-01-15T23:59:59.999Z'
    assert r.label() == {'from': '2025-01-15', 'to': '2025-01-15'}


@pytest.mark.parametrize('value', ['2025-1-15', '15-01-2025', '2025/01/15', '', 'yesterday', '2025-01-15T00:00'])
def test_bad_format_rejected(value):
    with pytest.raises(InvalidDateFormat):
        date_ranges.single_day(value)


@pytest.mark.parametrize('value', ['2025-02-30', '2025-13-01', '2025-00-10'])
def test_impossible_calendar_date_rejected(value):
    with pytest.raises(InvalidDateFormat):
        date_ranges.parse_date(value)


def test_leap_day_accepted():
    assert date_ranges.parse_date('2024-02-29') == date(2024, 2, 29)


def test_explicit_range_spans_three_days():
    r = date_ranges.explicit_range('2025-01-01', '2025-01-03')
    assert r.start_iso() == '2025-01-01T00:00:00.000Z'
    assert r.end_iso() == '2025-01-03T23:59:59.999Z'
    assert date_ranges.enumerate_days(r) == [date(2025, 1, 1), date(2025, 1, 2), date(2025, 1, 3)]


def test_explicit_range_same_day_is_one_day():
    r = date_ranges.explicit_range('2025-01-05', '2025-01-05')
    assert date_ranges.enumerate_days(r) == [date(2025, 1, 5)]


def test_explicit_range_reversed_bounds():
    with pytest.raises(InvalidRange):
        date_ranges.explicit_range('2025-01-03', '2025-01-01')


def test_today_and_yesterday_use_utc_calendar():
    now = utc(2025, 3, 1, 0, 30)
    assert date_ranges.today(now).label() == {'from': '2025-03-01', 'to': '2025-03-01'}
    assert date_ranges.yesterday(now).label() == {'from': '2025-02-28', 'to': '2025-02-28'}


def test_now_with_offset_is_converted_to_utc():
    tbilisi = timezone(timedelta(hours=4))
    now = datetime(2025, 3, 1, 2, 0, tzinfo=tbilisi)  # still Feb 28 in UTC
    assert date_ranges.today(now).label()['from'] == '2025-02-28'


def test_past_months_range():
    r = date_ranges.past_months_range(3, now=utc(2025, 5, 20, 12))
    assert r.label() == {'from': '2025-02-01', 'to': '2025-05-19'}


def test_past_months_range_crosses_year():
    r = date_ranges.past_months_range(2, now=utc(2025, 1, 10))
    assert r.label() == {'from': '2024-11-01', 'to': '2025-01-09'}


def test_past_months_zero_is_month_to_yesterday():
    r = date_ranges.past_months_range(0, now=utc(2025, 5, 20))
    assert r.label() == {'from': '2025-05-01', 'to': '2025-05-19'}


def test_past_months_zero_on_first_of_month_never_inverts():
    r = date_ranges.past_months_range(0, now=utc(2025, 5, 1, 8))
    assert r.start <= r.end
    assert r.label() == {'from': '2025-04-01', 'to': '2025-04-30'}


@pytest.mark.parametrize('months', [-1, 1.5, '3', True])
def test_past_months_rejects_bad_counts(months):
    with pytest.raises(InvalidRange):
        date_ranges.past_months_range(months, now=utc(2025, 5, 20))


def test_past_calendar_month_complete():
    r = date_ranges.past_calendar_month_complete(now=utc(2025, 3, 10))
    assert r.label() == {'from': '2025-02-01', 'to': '2025-02-28'}


def test_past_calendar_month_complete_in_january():
    r = date_ranges.past_calendar_month_complete(now=utc(2025, 1, 15))
    assert r.label() == {'from': '2024-12-01', 'to': '2024-12-31'}
    assert r.end_iso() == '2024-12-31T23:59:59.999Z'


def test_past_calendar_month_including_current():
    r = date_ranges.past_calendar_month_including_current(now=utc(2025, 3, 10))
    assert r.label() == {'from': '2025-02-01', 'to': '2025-03-09'}


def test_contains_is_inclusive():
    r = date_ranges.single_day('2025-01-15')
    assert r.contains(r.start)
    assert r.contains(r.end)
    assert not r.contains(utc(2025, 1, 16))
    assert not r.contains(utc(2025, 1, 14, 23, 59, 59, 999999))


def test_parse_instant_handles_z_and_offsets():
    assert date_ranges.parse_instant('2025-01-15T10:00:00Z') == utc(2025, 1, 15, 10)
    assert date_ranges.parse_instant('2025-01-15T14:00:00+04:00') == utc(2025, 1, 15, 10)


@pytest.mark.parametrize('start, end', [
    ('2025-01-10', '2025-01-12'),
    ('2025-01-30', '2025-02-02'),
    ('2024-12-30', '2025-01-02'),
    ('2024-02-28', '2024-03-01'),
])
def test_each_enumerated_day_lies_inside_the_range(start, end):
    outer = date_ranges.explicit_range(start, end)
    days = date_ranges.enumerate_days(outer)

    assert days[0].isoformat() == start
    assert days[-1].isoformat() == end
    for day in days:
        inner = date_ranges.single_day(day.isoformat())
        assert outer.start <= inner.start
        assert inner.end <= outer.end
