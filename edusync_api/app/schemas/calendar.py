"""
Pydantic models for the calendar month view.

A month is rendered as a Sunday-first grid: ``leading_blanks`` empty
cells followed by one ``CalendarDay`` per day of the month.
"""

import datetime as dt
from typing import List

from pydantic import BaseModel

from .notification import Toast


class CalendarEntry(BaseModel):
    id: str
    title: str
    time: dt.time
    category: str
    status: str


class CalendarDay(BaseModel):
    date: dt.date
    day: int
    is_today: bool = False
    has_event: bool = False
    events: List[CalendarEntry] = []


class MonthRef(BaseModel):
    year: int
    month: int


class CalendarMonth(BaseModel):
    year: int
    month: int
    title: str
    weekdays: List[str]
    leading_blanks: int
    days: List[CalendarDay]
    previous: MonthRef
    next: MonthRef
    notifications: List[Toast] = []
