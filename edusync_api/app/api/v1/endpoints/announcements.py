"""
Announcement endpoints for API v1.

Anyone can read announcements; staff (every role but participants)
can post them and authors can remove their own.  Successful writes
answer with the refreshed list.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from edusync_api.app.core.backend import BackendClient
from edusync_api.app.core.security import (
    get_current_user,
    get_optional_user,
    get_viewer_backend,
    require_organizer,
)
from edusync_api.app.schemas.announcement import (
    AnnouncementCreate,
    AnnouncementListResponse,
    AnnouncementMutationResponse,
)
from edusync_api.app.schemas.notification import Toast
from edusync_api.app.services.announcement_service import AnnouncementService
from edusync_api.app.services.profile_service import ProfileService


router = APIRouter()


async def _refreshed(backend: BackendClient, toast: Toast) -> AnnouncementMutationResponse:
    if toast.is_error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=toast.model_dump())
    announcements, _ = await AnnouncementService.list_announcements(backend)
    return AnnouncementMutationResponse(notification=toast, announcements=announcements)


@router.get("/", response_model=AnnouncementListResponse)
async def list_announcements(
    user: Optional[Dict[str, Any]] = Depends(get_optional_user),
    backend: BackendClient = Depends(get_viewer_backend),
) -> AnnouncementListResponse:
    """List announcements, newest first."""
    announcements, toast = await AnnouncementService.list_announcements(backend)
    return AnnouncementListResponse(
        announcements=announcements,
        can_post=await ProfileService.can_manage_events(backend, user["id"] if user else None),
        notifications=[toast] if toast else [],
    )


@router.post("/", response_model=AnnouncementMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_announcement(
    announcement: AnnouncementCreate,
    current_user: Dict[str, Any] = Depends(require_organizer),
    backend: BackendClient = Depends(get_viewer_backend),
) -> AnnouncementMutationResponse:
    toast = await AnnouncementService.create_announcement(backend, current_user["id"], announcement)
    return await _refreshed(backend, toast)


@router.delete("/{announcement_id}", response_model=AnnouncementMutationResponse)
async def delete_announcement(
    announcement_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    backend: BackendClient = Depends(get_viewer_backend),
) -> AnnouncementMutationResponse:
    """Delete an announcement posted by the current user."""
    toast = await AnnouncementService.delete_announcement(backend, current_user["id"], announcement_id)
    return await _refreshed(backend, toast)
