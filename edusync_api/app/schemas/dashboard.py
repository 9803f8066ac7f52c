"""Pydantic models for the dashboard summary."""

from typing import List

from pydantic import BaseModel

from .event import EventCard
from .notification import Toast


class DashboardStats(BaseModel):
    total_events: int
    total_registrations: int
    upcoming_count: int
    participation_rate: int


class DashboardResponse(BaseModel):
    stats: DashboardStats
    upcoming_events: List[EventCard]
    can_manage_events: bool = False
    notifications: List[Toast] = []
