"""
Authentication endpoints for API v1.

Thin wrappers around the hosted auth service.  The access token of the
returned session is what clients send as ``Authorization: Bearer``.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status

from edusync_api.app.core.auth import AuthClient
from edusync_api.app.core.backend import BackendClient, BackendError
from edusync_api.app.core.security import (
    get_auth_client,
    get_current_user,
    get_feed_registry,
    get_viewer_backend,
)
from edusync_api.app.schemas.auth import AuthResponse, AuthUser, SessionInfo, SignInRequest, SignUpRequest
from edusync_api.app.schemas.notification import Toast
from edusync_api.app.services.auth_service import AuthService
from edusync_api.app.services.event_service import EventFeedRegistry
from edusync_api.app.services.profile_service import ProfileService


router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(
    request: SignUpRequest,
    auth: AuthClient = Depends(get_auth_client),
) -> AuthResponse:
    """Create a student or participant account.

    Teachers cannot sign up here.  Unless email confirmation is
    disabled on the auth service, no session is returned until the
    address is verified.
    """
    response = await AuthService.sign_up(auth, request)
    if response.notification.is_error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=response.notification.model_dump())
    return response


@router.post("/signin", response_model=AuthResponse)
async def sign_in(
    request: SignInRequest,
    auth: AuthClient = Depends(get_auth_client),
) -> AuthResponse:
    response = await AuthService.sign_in(auth, request)
    if response.notification.is_error:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=response.notification.model_dump(),
        )
    return response


@router.post("/signout", response_model=Toast)
async def sign_out(
    current_user: Dict[str, Any] = Depends(get_current_user),
    auth: AuthClient = Depends(get_auth_client),
    registry: EventFeedRegistry = Depends(get_feed_registry),
) -> Toast:
    toast = await AuthService.sign_out(auth, current_user["access_token"])
    if toast.is_error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=toast.model_dump())
    registry.discard(current_user["id"])
    return toast


@router.get("/session", response_model=SessionInfo)
async def get_session(
    current_user: Dict[str, Any] = Depends(get_current_user),
    backend: BackendClient = Depends(get_viewer_backend),
) -> SessionInfo:
    """Return the signed-in user and their profile, if any."""
    try:
        profile = await ProfileService.get_profile(backend, current_user["id"])
    except BackendError as exc:
        logger.warning("Could not load profile of %s: %s", current_user["id"], exc)
        profile = None
    return SessionInfo(
        user=AuthUser(id=current_user["id"], email=current_user.get("email")),
        profile=profile,
    )
