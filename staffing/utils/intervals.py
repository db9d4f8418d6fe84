"""
Half-open time intervals used by the scheduling engine.

Every moment is stored as a naive UTC datetime. Date-only ranges (schedule
windows, availability windows) are inclusive whole days and are normalized to
``[start 00:00, end + 1 day 00:00)`` before any comparison, so they compare
correctly against timestamped assignment ranges.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, NamedTuple, Union

Moment = Union[date, datetime]


class Interval(NamedTuple):
    """A half-open range ``[start, end)``."""
    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def to_dict(self):
        return {'start': self.start.isoformat(), 'end': self.end.isoformat()}


def to_utc_naive(value: Moment) -> datetime:
    """Convert a date or datetime to the naive-UTC storage form.

    Aware datetimes are converted to UTC, naive ones are taken as UTC already
    and plain dates become midnight of that day.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    raise TypeError(f'Expected date or datetime, got {type(value).__name__}')


def parse_moment(text: str) -> Moment:
    """Parse ``YYYY-MM-DD`` into a date, anything else ISO-8601 into a naive UTC datetime."""
    if not isinstance(text, str) or not text:
        raise ValueError('Expected a date string')
    if len(text) == 10:
        return datetime.strptime(text, '%Y-%m-%d').date()
    # fromisoformat on older interpreters does not accept a trailing Z
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    return to_utc_naive(datetime.fromisoformat(text))


def interval(start: Moment, end: Moment) -> Interval:
    """Build a half-open interval from two moments taken as-is."""
    return Interval(to_utc_naive(start), to_utc_naive(end))


def normalize(start: Moment, end: Moment) -> Interval:
    """Build an interval from a range whose date-only ends are inclusive whole days."""
    if isinstance(end, date) and not isinstance(end, datetime):
        end_moment = to_utc_naive(end) + timedelta(days=1)
    else:
        end_moment = to_utc_naive(end)
    return Interval(to_utc_naive(start), end_moment)


def overlaps(a: Interval, b: Interval) -> bool:
    # Touching intervals (a.end == b.start) do not overlap
    return a.start < b.end and b.start < a.end


def contains(outer: Interval, inner: Interval) -> bool:
    return outer.start <= inner.start and inner.end <= outer.end


def merge(intervals: Iterable[Interval]) -> List[Interval]:
    """Union of intervals as a sorted list of disjoint intervals. Touching intervals are joined."""
    merged = []
    for current in sorted(intervals):
        if merged and current.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = Interval(last.start, max(last.end, current.end))
        else:
            merged.append(current)
    return merged


def uncovered(target: Interval, covering: Iterable[Interval]) -> List[Interval]:
    """Parts of ``target`` that no interval in ``covering`` covers."""
    gaps = []
    cursor = target.start
    for block in merge(covering):
        if block.end <= cursor:
            continue
        if block.start >= target.end:
            break
        if block.start > cursor:
            gaps.append(Interval(cursor, block.start))
        cursor = max(cursor, block.end)
        if cursor >= target.end:
            break
    if cursor < target.end:
        gaps.append(Interval(cursor, target.end))
    return gaps
