"""
Month grid for the calendar page.

The grid starts on Sunday.  Days before the first of the month are
represented by ``leading_blanks`` rather than by cells of the previous
month.
"""

import calendar
import datetime as dt
from typing import Dict, List, Optional, Sequence, Tuple

from ..schemas.calendar import CalendarDay, CalendarEntry, CalendarMonth, MonthRef
from ..schemas.event import EventRead


WEEKDAYS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    """Move ``delta`` months from ``year``/``month``, wrapping years."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


class CalendarService:
    @classmethod
    def month_view(
        cls,
        events: Sequence[EventRead],
        year: int,
        month: int,
        today: Optional[dt.date] = None,
    ) -> CalendarMonth:
        if not 1 <= month <= 12:
            raise ValueError(f"Invalid month {month}")
        today = today or dt.date.today()

        by_day: Dict[dt.date, List[CalendarEntry]] = {}
        for event in events:
            if event.date.year == year and event.date.month == month:
                by_day.setdefault(event.date, []).append(
                    CalendarEntry(
                        id=event.id,
                        title=event.title,
                        time=event.time,
                        category=event.category,
                        status=event.status,
                    )
                )

        first_weekday, days_in_month = calendar.monthrange(year, month)
        days = []
        for day in range(1, days_in_month + 1):
            date = dt.date(year, month, day)
            entries = sorted(by_day.get(date, []), key=lambda entry: entry.time)
            days.append(
                CalendarDay(
                    date=date,
                    day=day,
                    is_today=date == today,
                    has_event=bool(entries),
                    events=entries,
                )
            )

        prev_year, prev_month = shift_month(year, month, -1)
        next_year, next_month = shift_month(year, month, 1)
        return CalendarMonth(
            year=year,
            month=month,
            title=f"{calendar.month_name[month]} {year}",
            weekdays=WEEKDAYS,
            # monthrange counts from Monday == 0
            leading_blanks=(first_weekday + 1) % 7,
            days=days,
            previous=MonthRef(year=prev_year, month=prev_month),
            next=MonthRef(year=next_year, month=next_month),
        )
