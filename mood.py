"""Mood chart data: ordinal values, time windows and period labels."""

import calendar
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel

from models import Mood, ProjectUpdate

MOOD_VALUES = {
    Mood.NOT_GREAT: 1,
    Mood.OKAY: 2,
    Mood.GOOD: 3,
    Mood.GREAT: 4,
}

MOOD_LABELS = {
    Mood.NOT_GREAT: "Not Great",
    Mood.OKAY: "Okay",
    Mood.GOOD: "Good",
    Mood.GREAT: "Great",
}

MOOD_STATEMENTS = {
    Mood.NOT_GREAT: "was not feeling great",
    Mood.OKAY: "was feeling okay",
    Mood.GOOD: "was feeling good",
    Mood.GREAT: "was feeling great",
}


class Window(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ALL = "all"


class ChartPoint(BaseModel):
    x: datetime
    y: int
    name: str
    mood: Mood


class MoodChart(BaseModel):
    window: Window
    anchor: date
    label: str
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    points: List[ChartPoint] = []


def mood_value(mood) -> int:
    return MOOD_VALUES[Mood(mood)]


def mood_statement(mood) -> str:
    return MOOD_STATEMENTS[Mood(mood)]


def chart_points(updates: Iterable[ProjectUpdate]) -> List[ChartPoint]:
    dated = [u for u in updates if u.created_at is not None]
    dated.sort(key=lambda u: u.created_at)
    return [
        ChartPoint(x=u.created_at, y=mood_value(u.mood), name=u.user_name, mood=u.mood)
        for u in dated
    ]


def _start_of_week(day: date) -> date:
    # weeks start on Sunday
    return day - timedelta(days=(day.weekday() + 1) % 7)


def period_bounds(window, anchor: date) -> Optional[Tuple[datetime, datetime]]:
    """Inclusive start and end of the period containing ``anchor``; None for ``all``."""
    window = Window(window)
    if window == Window.ALL:
        return None
    if window == Window.DAY:
        first = last = anchor
    elif window == Window.WEEK:
        first = _start_of_week(anchor)
        last = first + timedelta(days=6)
    elif window == Window.MONTH:
        first = anchor.replace(day=1)
        last = anchor.replace(day=calendar.monthrange(anchor.year, anchor.month)[1])
    else:
        first = anchor.replace(month=1, day=1)
        last = anchor.replace(month=12, day=31)
    return datetime.combine(first, time.min), datetime.combine(last, time.max)


def _naive(value: datetime) -> datetime:
    # period bounds are in UTC
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def filter_window(points: Iterable[ChartPoint], window, anchor: date) -> List[ChartPoint]:
    bounds = period_bounds(window, anchor)
    if bounds is None:
        return list(points)
    start, end = bounds
    return [p for p in points if start <= _naive(p.x) <= end]


def _add_months(day: date, months: int) -> date:
    index = day.year * 12 + day.month - 1 + months
    year, month = divmod(index, 12)
    month += 1
    # clamp to the last day of shorter months
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def shift_anchor(anchor: date, window, steps: int = 1) -> date:
    """Move the anchor ``steps`` periods forward (negative steps go back)."""
    window = Window(window)
    if window == Window.DAY:
        return anchor + timedelta(days=steps)
    if window == Window.WEEK:
        return anchor + timedelta(weeks=steps)
    if window == Window.MONTH:
        return _add_months(anchor, steps)
    if window == Window.YEAR:
        return _add_months(anchor, 12 * steps)
    return anchor


def period_label(window, anchor: date) -> str:
    window = Window(window)
    if window == Window.DAY:
        return f"{anchor:%b} {anchor.day}, {anchor.year}"
    if window == Window.WEEK:
        first = _start_of_week(anchor)
        last = first + timedelta(days=6)
        return f"{first:%b} {first.day} - {last:%b} {last.day}, {last.year}"
    if window == Window.MONTH:
        return f"{anchor:%B %Y}"
    if window == Window.YEAR:
        return str(anchor.year)
    return "All time"


def build_chart(updates: Iterable[ProjectUpdate], window, anchor: date) -> MoodChart:
    window = Window(window)
    bounds = period_bounds(window, anchor)
    return MoodChart(
        window=window,
        anchor=anchor,
        label=period_label(window, anchor),
        start=bounds[0] if bounds else None,
        end=bounds[1] if bounds else None,
        points=filter_window(chart_points(updates), window, anchor),
    )
