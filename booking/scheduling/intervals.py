"""Single-day time intervals and the overlap rule used everywhere in scheduling."""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from booking.core import config


@dataclass(frozen=True, order=True)
class TimeInterval:
    """A half-open ``[start, end)`` range of a single calendar day."""

    date: date
    start: time
    end: time

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError('Interval end must be after its start.')

    @classmethod
    def from_duration(cls, day: date, start: time, duration_minutes: int) -> 'TimeInterval':
        if duration_minutes <= 0:
            raise ValueError('Duration must be a positive number of minutes.')

        start_at = datetime.combine(day, start)
        end_at = start_at + timedelta(minutes=duration_minutes)
        if end_at.date() != day:
            raise ValueError('Interval cannot extend past the end of the day.')

        return cls(day, start, end_at.time())

    @property
    def duration_minutes(self) -> int:
        delta = datetime.combine(self.date, self.end) - datetime.combine(self.date, self.start)
        return int(delta.total_seconds() // 60)

    def overlaps(self, other: 'TimeInterval', touching: bool | None = None) -> bool:
        if touching is None:
            touching = config.BACK_TO_BACK_CONFLICTS

        if self.date != other.date:
            return False

        if touching:
            return self.start <= other.end and other.start <= self.end
        return self.start < other.end and other.start < self.end

    def covers(self, other: 'TimeInterval') -> bool:
        return self.date == other.date and self.start <= other.start and self.end >= other.end

    def to_dict(self) -> dict:
        return {
            'date': self.date.isoformat(),
            'start_time': self.start.strftime('%H:%M'),
            'end_time': self.end.strftime('%H:%M'),
        }


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar days."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError('Date range end must not be before its start.')

    @classmethod
    def week_of(cls, day: date) -> 'DateRange':
        monday = day - timedelta(days=day.weekday())
        return cls(monday, monday + timedelta(days=6))

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end


def window_interval(window) -> TimeInterval:
    return TimeInterval(window.date, window.start_time, window.end_time)


def appointment_interval(appointment) -> TimeInterval:
    return TimeInterval.from_duration(
        appointment.date,
        appointment.start_time,
        appointment.effective_duration_minutes,
    )
