"""
Request-scoped dependencies for authentication and backend access.

Clients authenticate with the access token issued by the auth service,
sent as ``Authorization: Bearer <token>``.  The token is resolved to a
user through the auth service on every request; nothing is decoded or
verified locally.  The resolved user is a plain dict::

    {"id": "<uuid>", "email": "...", "access_token": "<token>"}

Backend queries of a signed-in viewer are sent with their token so the
backend's row level policies apply to them.
"""

from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .auth import AuthClient
from .backend import BackendClient
from ..services.auth_service import AuthService
from ..services.event_service import EventFeed, EventFeedRegistry
from ..services.profile_service import ProfileService


security = HTTPBearer(auto_error=False)


def get_backend(request: Request) -> BackendClient:
    """Anonymous backend client created at application startup."""
    return request.app.state.backend


def get_auth_client(request: Request) -> AuthClient:
    return request.app.state.auth


def get_feed_registry(request: Request) -> EventFeedRegistry:
    return request.app.state.feeds


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth: AuthClient = Depends(get_auth_client),
) -> Optional[Dict[str, Any]]:
    """Dependency returning the current user, or ``None`` when anonymous.

    A token that is present but invalid or expired is rejected with 401
    rather than silently treated as anonymous.
    """
    if credentials is None:
        return None
    token = credentials.credentials
    user = await AuthService.resolve_user(auth, token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return {"id": user.id, "email": user.email, "access_token": token}


async def get_current_user(
    user: Optional[Dict[str, Any]] = Depends(get_optional_user),
) -> Dict[str, Any]:
    """Dependency that requires an authenticated user."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_viewer_backend(
    backend: BackendClient = Depends(get_backend),
    user: Optional[Dict[str, Any]] = Depends(get_optional_user),
) -> BackendClient:
    """Backend client acting as the current viewer (anonymous if signed out)."""
    if user is None:
        return backend
    return backend.with_token(user["access_token"])


def get_event_feed(
    registry: EventFeedRegistry = Depends(get_feed_registry),
    backend: BackendClient = Depends(get_viewer_backend),
    user: Optional[Dict[str, Any]] = Depends(get_optional_user),
) -> EventFeed:
    return registry.feed_for(backend, user)


async def require_organizer(
    user: Dict[str, Any] = Depends(get_current_user),
    backend: BackendClient = Depends(get_viewer_backend),
) -> Dict[str, Any]:
    """Dependency allowing everyone except participants.

    Use on routes that publish content (events, announcements).
    """
    if not await ProfileService.can_manage_events(backend, user["id"]):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions",
        )
    return user
