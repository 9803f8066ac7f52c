"""
Pydantic models for announcements.

Announcements are short notices posted by staff.  When read, each row
carries the joined profile of its author, flattened into
``creator_name`` for display.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .notification import Toast


class AnnouncementCreate(BaseModel):
    """Schema for posting an announcement.

    Both fields default to empty strings so that missing input is
    reported as a toast by the service rather than as a validation
    error.
    """

    title: str = Field("", examples=["Library closed on Friday"])
    content: str = Field("", examples=["The library will be closed for inventory."])


class CreatorName(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class AnnouncementRead(BaseModel):
    id: str
    title: str
    content: str
    created_by: Optional[str] = None
    created_at: datetime
    creator: Optional[CreatorName] = None
    creator_name: str = "Unknown"


class AnnouncementListResponse(BaseModel):
    announcements: List[AnnouncementRead]
    can_post: bool = False
    notifications: List[Toast] = []


class AnnouncementMutationResponse(BaseModel):
    notification: Toast
    announcements: List[AnnouncementRead]
