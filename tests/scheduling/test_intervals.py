from datetime import date, time

import pytest

from booking.core import config
from booking.scheduling.intervals import DateRange, TimeInterval

DAY = date(2024, 6, 1)


def interval(start: time, end: time, day: date = DAY) -> TimeInterval:
    return TimeInterval(day, start, end)


def test_interval_rejects_empty_or_inverted_range() -> None:
    with pytest.raises(ValueError):
        interval(time(10, 0), time(10, 0))

    with pytest.raises(ValueError):
        interval(time(11, 0), time(10, 0))


def test_from_duration_computes_end_time() -> None:
    booked = TimeInterval.from_duration(DAY, time(9, 45), 30)

    assert booked.end == time(10, 15)
    assert booked.duration_minutes == 30


def test_from_duration_rejects_crossing_midnight() -> None:
    with pytest.raises(ValueError):
        TimeInterval.from_duration(DAY, time(23, 45), 30)


@pytest.mark.parametrize(
    ('first', 'second', 'expected'),
    [
        ((time(9, 0), time(10, 0)), (time(9, 30), time(10, 30)), True),
        ((time(9, 0), time(10, 0)), (time(9, 0), time(9, 15)), True),
        ((time(9, 0), time(12, 0)), (time(10, 0), time(11, 0)), True),
        ((time(9, 0), time(10, 0)), (time(10, 0), time(11, 0)), False),
        ((time(9, 0), time(10, 0)), (time(11, 0), time(12, 0)), False),
    ],
)
def test_overlap_is_symmetric(first, second, expected: bool) -> None:
    a = interval(*first)
    b = interval(*second)

    assert a.overlaps(b) is expected
    assert b.overlaps(a) is expected


def test_intervals_on_different_days_never_overlap() -> None:
    assert not interval(time(9, 0), time(10, 0)).overlaps(
        interval(time(9, 0), time(10, 0), day=date(2024, 6, 2))
    )


def test_back_to_back_knob_makes_touching_intervals_conflict(monkeypatch: pytest.MonkeyPatch) -> None:
    first = interval(time(9, 0), time(10, 0))
    second = interval(time(10, 0), time(11, 0))

    monkeypatch.setattr(config, 'BACK_TO_BACK_CONFLICTS', True)

    assert first.overlaps(second)
    assert second.overlaps(first)
    assert not first.overlaps(second, touching=False)


def test_covers_requires_full_containment() -> None:
    window = interval(time(9, 0), time(12, 0))

    assert window.covers(interval(time(9, 0), time(12, 0)))
    assert window.covers(interval(time(11, 30), time(12, 0)))
    assert not window.covers(interval(time(11, 45), time(12, 15)))


def test_week_of_starts_on_monday() -> None:
    week = DateRange.week_of(date(2024, 6, 1))

    assert week.start == date(2024, 5, 27)
    assert week.end == date(2024, 6, 2)
    assert week.days == 7
    assert date(2024, 6, 2) in week
    assert date(2024, 6, 3) not in week


def test_date_range_rejects_inverted_bounds() -> None:
    with pytest.raises(ValueError):
        DateRange(date(2024, 6, 2), date(2024, 6, 1))
