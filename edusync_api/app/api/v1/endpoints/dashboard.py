"""
Dashboard endpoint for API v1.

Summarises the viewer's event feed: headline figures and the next few
upcoming events.
"""

from fastapi import APIRouter, Depends

from edusync_api.app.core.backend import BackendClient
from edusync_api.app.core.security import get_event_feed, get_viewer_backend
from edusync_api.app.schemas.dashboard import DashboardResponse
from edusync_api.app.services.event_service import EventFeed, to_card
from edusync_api.app.services.profile_service import ProfileService
from edusync_api.app.services.statistics_service import StatisticsService


router = APIRouter()


@router.get("/", response_model=DashboardResponse)
async def get_dashboard(
    feed: EventFeed = Depends(get_event_feed),
    backend: BackendClient = Depends(get_viewer_backend),
) -> DashboardResponse:
    events = await feed.fetch_events()
    signed_in = feed.user_id is not None
    return DashboardResponse(
        stats=StatisticsService.overview(events),
        upcoming_events=[to_card(event, signed_in) for event in StatisticsService.upcoming_events(events)],
        can_manage_events=await ProfileService.can_manage_events(backend, feed.user_id),
        notifications=feed.drain_notifications(),
    )
