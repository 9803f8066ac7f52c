"""
Top-level router for version 1 of the API.

This router aggregates domain-specific routers under a unified prefix.
When new domains are introduced, update this file to include their
routers.
"""

from fastapi import APIRouter

from .endpoints import (
    announcements,
    auth,
    calendar,
    dashboard,
    events,
    profile,
)

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(events.router, prefix="/events", tags=["events"])
router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
router.include_router(calendar.router, prefix="/calendar", tags=["calendar"])
router.include_router(profile.router, prefix="/profile", tags=["profile"])
router.include_router(announcements.router, prefix="/announcements", tags=["announcements"])
