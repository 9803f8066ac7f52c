"""
Calendar endpoint for API v1.

Returns a month grid of the viewer's events.  Without ``year`` and
``month`` the current month is shown.
"""

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, Query

from edusync_api.app.core.security import get_event_feed
from edusync_api.app.schemas.calendar import CalendarMonth
from edusync_api.app.services.calendar_service import CalendarService
from edusync_api.app.services.event_service import EventFeed


router = APIRouter()


@router.get("/", response_model=CalendarMonth)
async def get_month(
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    feed: EventFeed = Depends(get_event_feed),
) -> CalendarMonth:
    today = dt.date.today()
    events = await feed.fetch_events()
    # Failures leave the previous feed in place; the grid is built from it.
    view = CalendarService.month_view(
        events,
        year or today.year,
        month or today.month,
        today=today,
    )
    view.notifications = feed.drain_notifications()
    return view
