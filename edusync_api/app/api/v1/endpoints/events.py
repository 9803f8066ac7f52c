"""
Event endpoints for API v1.

Every handler works on the caller's :class:`EventFeed`.  Reads refetch
the feed and shape it for a page (filters, counts, card actions);
writes go through the feed's mutations, which refetch on success.
A failed mutation is answered with an HTTP error whose ``detail`` is
the toast describing it.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from edusync_api.app.core.backend import BackendClient
from edusync_api.app.core.security import (
    get_current_user,
    get_event_feed,
    get_viewer_backend,
    require_organizer,
)
from edusync_api.app.schemas.event import (
    ALL,
    CATEGORIES,
    STATUSES,
    EventCreate,
    EventListResponse,
    EventMutationResponse,
)
from edusync_api.app.schemas.notification import Toast
from edusync_api.app.services.event_service import (
    ALREADY_REGISTERED,
    ActionDisabledError,
    EventFeed,
    EventNotFoundError,
    count_by_status,
    filter_events,
    to_card,
)
from edusync_api.app.services.profile_service import ProfileService


router = APIRouter()


def mutation_response(feed: EventFeed, toast: Optional[Toast]) -> EventMutationResponse:
    """Turn the outcome of a feed mutation into a response or an HTTP error."""
    notifications = [n for n in feed.drain_notifications() if n is not toast]
    if toast is None:
        # Mutations are skipped for anonymous viewers.
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    if toast.is_error:
        code = (
            status.HTTP_409_CONFLICT
            if toast.description == ALREADY_REGISTERED
            else status.HTTP_400_BAD_REQUEST
        )
        raise HTTPException(status_code=code, detail=toast.model_dump())
    return EventMutationResponse(notification=toast, events=feed.events, notifications=notifications)


@router.get("/", response_model=EventListResponse)
async def list_events(
    search: str = Query("", description="Matched against title and description"),
    category: str = Query(ALL),
    status_filter: str = Query(ALL, alias="status"),
    feed: EventFeed = Depends(get_event_feed),
    backend: BackendClient = Depends(get_viewer_backend),
) -> EventListResponse:
    """Return the viewer's events, filtered, with per-status counts.

    - **search**: case-insensitive substring of title or description.
    - **category**: one of the categories or `All`.
    - **status**: `upcoming`, `ongoing`, `completed` or `All`.

    Counts always describe the unfiltered list.
    """
    events = await feed.fetch_events()
    signed_in = feed.user_id is not None
    filtered = filter_events(events, search, category, status_filter)
    return EventListResponse(
        events=[to_card(event, signed_in) for event in filtered],
        counts=count_by_status(events),
        found=len(filtered),
        loading=feed.loading,
        can_manage_events=await ProfileService.can_manage_events(backend, feed.user_id),
        notifications=feed.drain_notifications(),
    )


@router.get("/categories")
async def list_categories() -> Dict[str, List[str]]:
    """Values accepted by the category and status filters."""
    return {"categories": [ALL] + CATEGORIES, "statuses": [ALL] + STATUSES}


@router.post("/", response_model=EventMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    event: EventCreate,
    current_user: Dict[str, Any] = Depends(require_organizer),
    feed: EventFeed = Depends(get_event_feed),
) -> EventMutationResponse:
    """Create a new event.  Not available to participants."""
    toast = await feed.create_event(event)
    return mutation_response(feed, toast)


@router.post(
    "/{event_id}/registration",
    response_model=EventMutationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_for_event(
    event_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    feed: EventFeed = Depends(get_event_feed),
) -> EventMutationResponse:
    """Register the current user for an event.

    Capacity is not checked here; the backend is the source of truth.
    A second registration for the same event answers 409.
    """
    toast = await feed.register_for_event(event_id)
    return mutation_response(feed, toast)


@router.delete("/{event_id}/registration", response_model=EventMutationResponse)
async def unregister_from_event(
    event_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    feed: EventFeed = Depends(get_event_feed),
) -> EventMutationResponse:
    toast = await feed.unregister_from_event(event_id)
    return mutation_response(feed, toast)


@router.post("/{event_id}/toggle", response_model=EventMutationResponse)
async def toggle_registration(
    event_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    feed: EventFeed = Depends(get_event_feed),
) -> EventMutationResponse:
    """Press the event card button.

    Unregisters when the viewer is registered and registers otherwise.
    Answers 409 when the button is disabled (completed or full event).
    """
    try:
        toast = await feed.toggle_registration(event_id)
    except EventNotFoundError as e:
        feed.drain_notifications()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ActionDisabledError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    return mutation_response(feed, toast)
