"""
Pydantic models for event data.

``EventBase`` contains the persisted fields shared by requests and
responses; ``EventCreate`` validates the create form and ``EventRead``
adds the identifier, bookkeeping columns and the two fields derived on
every fetch: ``registrations`` (live count) and ``is_registered``
(whether the current viewer holds a registration).
"""

import datetime as dt
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ..core.config import settings
from .notification import Toast


EventStatus = Literal["upcoming", "ongoing", "completed"]

CATEGORIES: List[str] = ["Academic", "Sports", "Cultural", "Competition", "Workshop"]
STATUSES: List[str] = ["upcoming", "ongoing", "completed"]

# Sentinel used by the list filters to mean "no filter".
ALL = "All"


class EventBase(BaseModel):
    title: str = Field(..., examples=["Science Fair"])
    description: Optional[str] = Field(None, examples=["Annual science fair for grades 6-12"])
    date: dt.date = Field(..., examples=["2025-11-14"])
    time: dt.time = Field(..., examples=["10:00"])
    location: str = Field(..., examples=["Main Hall"])
    category: str = Field(..., examples=["Academic"])
    max_registrations: int = Field(settings.default_max_registrations, examples=[50])
    status: EventStatus = "upcoming"


class EventCreate(EventBase):
    """Schema for creating an event."""

    title: str = Field(..., min_length=1, examples=["Science Fair"])
    location: str = Field(..., min_length=1, examples=["Main Hall"])
    max_registrations: int = Field(settings.default_max_registrations, ge=1, examples=[50])

    @field_validator("category")
    @classmethod
    def known_category(cls, value: str) -> str:
        if value not in CATEGORIES:
            raise ValueError(f"category must be one of {', '.join(CATEGORIES)}")
        return value


class EventRead(EventBase):
    """Schema for reading an event, annotated for the current viewer."""

    id: str
    created_by: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
    registrations: int = 0
    is_registered: bool = False
    registered_at: Optional[dt.datetime] = None

    model_config = {
        "from_attributes": True,
    }


class EventAction(BaseModel):
    """State of the register/unregister action shown on an event card."""

    label: str
    disabled: bool
    registration_percentage: float


class EventCard(EventRead):
    action: EventAction


class EventCounts(BaseModel):
    total: int = 0
    upcoming: int = 0
    ongoing: int = 0
    completed: int = 0


class EventListResponse(BaseModel):
    events: List[EventCard]
    counts: EventCounts
    found: int
    loading: bool = False
    can_manage_events: bool = False
    notifications: List[Toast] = []


class EventMutationResponse(BaseModel):
    notification: Toast
    events: List[EventRead]
    # Further toasts raised while refreshing the feed after the write.
    notifications: List[Toast] = []
