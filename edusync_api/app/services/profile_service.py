"""
Business logic for user profiles.

Profiles decide what a viewer may do (participants cannot publish
events or announcements) and back the profile page, which lists the
events the viewer registered for together with their live
registration counts.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from ..core.backend import BackendClient, BackendError
from ..schemas.event import EventRead
from ..schemas.notification import Toast, failure
from ..schemas.profile import ProfileRead


logger = logging.getLogger(__name__)

PROFILES_TABLE = "profiles"

# Returned by the backend when a single-row select matches no rows.
NO_ROWS_CODE = "PGRST116"


class ProfileService:
    """Service for reading profiles and the viewer's registrations."""

    @classmethod
    async def get_profile(cls, backend: BackendClient, user_id: str) -> Optional[ProfileRead]:
        """Return the profile of ``user_id`` or ``None`` if there is none.

        Backend errors other than "no rows" are raised as ``BackendError``.
        """
        row, error = await backend.select(
            PROFILES_TABLE, "*", filters={"user_id": user_id}, single=True
        )
        if error:
            if error.code == NO_ROWS_CODE:
                return None
            raise error
        return ProfileRead.model_validate(row) if row else None

    @classmethod
    async def can_manage_events(cls, backend: BackendClient, user_id: Optional[str]) -> bool:
        """Whether the viewer may create events and announcements.

        Anonymous viewers may not.  A signed-in viewer may unless the
        profile says ``participant``; a missing or unreadable profile
        does not block them.
        """
        if not user_id:
            return False
        try:
            profile = await cls.get_profile(backend, user_id)
        except BackendError as exc:
            logger.warning("Could not load role of %s: %s", user_id, exc)
            return True
        return profile is None or profile.can_manage_events

    @classmethod
    async def registered_events(
        cls, backend: BackendClient, user_id: str
    ) -> Tuple[List[EventRead], Optional[Toast]]:
        """Events the user registered for, with live registration counts.

        Returns ``(events, toast)``; ``toast`` is set when loading failed,
        in which case ``events`` is empty.
        """
        try:
            rows, error = await backend.select(
                "event_registrations",
                "event_id, registered_at, events (*)",
                filters={"user_id": user_id},
            )
            if error:
                raise error
            rows = [row for row in rows or [] if row.get("events")]

            async def with_count(row: Dict[str, Any]) -> EventRead:
                count, count_error = await backend.count(
                    "event_registrations", filters={"event_id": row["event_id"]}
                )
                if count_error:
                    raise count_error
                return EventRead.model_validate(
                    {
                        **row["events"],
                        "registrations": count or 0,
                        "registered_at": row.get("registered_at"),
                        "is_registered": True,
                    }
                )

            events = await asyncio.gather(*(with_count(row) for row in rows))
        except (BackendError, ValidationError) as exc:
            logger.error("Error fetching registrations of %s: %s", user_id, exc)
            return [], failure("Error", "Failed to load your events")
        return list(events), None
