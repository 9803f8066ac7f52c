"""
Profile endpoint for API v1.

Shows the viewer's profile and the events they registered for.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from edusync_api.app.core.backend import BackendClient, BackendError
from edusync_api.app.core.security import get_current_user, get_viewer_backend
from edusync_api.app.schemas.notification import failure
from edusync_api.app.schemas.profile import ProfileResponse
from edusync_api.app.services.profile_service import ProfileService


router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=ProfileResponse)
async def get_profile(
    current_user: Dict[str, Any] = Depends(get_current_user),
    backend: BackendClient = Depends(get_viewer_backend),
) -> ProfileResponse:
    notifications = []
    try:
        profile = await ProfileService.get_profile(backend, current_user["id"])
    except BackendError as exc:
        logger.error("Error fetching profile of %s: %s", current_user["id"], exc)
        profile = None
        notifications.append(failure("Error", "Failed to load your profile"))
    events, toast = await ProfileService.registered_events(backend, current_user["id"])
    if toast:
        notifications.append(toast)
    return ProfileResponse(profile=profile, events=events, notifications=notifications)
