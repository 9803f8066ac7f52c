"""
Aggregated figures for the dashboard.

Everything here is computed in Python from an already fetched event
feed; no extra backend queries are issued.
"""

from __future__ import annotations

import math
from typing import List, Sequence

from ..schemas.dashboard import DashboardStats
from ..schemas.event import EventRead


class StatisticsService:
    """Dashboard metrics derived from a list of events."""

    @classmethod
    def upcoming_events(cls, events: Sequence[EventRead], limit: int = 3) -> List[EventRead]:
        """Return the first ``limit`` upcoming events, in feed order."""
        return [event for event in events if event.status == "upcoming"][:limit]

    @classmethod
    def participation_rate(cls, events: Sequence[EventRead]) -> int:
        """Percentage of total capacity taken by registrations.

        Rounded half up to a whole number.  Zero when there are no
        events or no capacity at all.
        """
        if not events:
            return 0
        capacity = sum(event.max_registrations for event in events)
        if capacity <= 0:
            return 0
        registrations = sum(event.registrations for event in events)
        return int(math.floor(registrations / capacity * 100 + 0.5))

    @classmethod
    def overview(cls, events: Sequence[EventRead]) -> DashboardStats:
        return DashboardStats(
            total_events=len(events),
            total_registrations=sum(event.registrations for event in events),
            upcoming_count=sum(1 for event in events if event.status == "upcoming"),
            participation_rate=cls.participation_rate(events),
        )
