"""
Business logic for announcements.

Announcements are listed newest first together with the name of their
author, taken from the ``profiles`` row joined through the
``announcements_created_by_fkey`` foreign key.  Posting and deleting
report their outcome as toasts, like every other mutation.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from ..core.backend import BackendClient, BackendError
from ..schemas.announcement import AnnouncementCreate, AnnouncementRead
from ..schemas.notification import Toast, failure, success


logger = logging.getLogger(__name__)

ANNOUNCEMENTS_TABLE = "announcements"
ANNOUNCEMENT_NOT_DELETABLE = "Announcement not found or posted by someone else"

ANNOUNCEMENT_COLUMNS = """
    id,
    title,
    content,
    created_by,
    created_at,
    creator:profiles!announcements_created_by_fkey (
        first_name,
        last_name
    )
"""


def creator_name(row: Dict[str, Any]) -> str:
    creator = row.get("creator")
    if not creator:
        return "Unknown"
    return f"{creator.get('first_name')} {creator.get('last_name')}"


class AnnouncementService:
    """Service for listing, posting and removing announcements."""

    @classmethod
    async def list_announcements(
        cls, backend: BackendClient
    ) -> Tuple[List[AnnouncementRead], Optional[Toast]]:
        """Return ``(announcements, toast)``; ``toast`` is set on failure."""
        try:
            rows, error = await backend.select(
                ANNOUNCEMENTS_TABLE, ANNOUNCEMENT_COLUMNS, order="created_at", ascending=False
            )
            if error:
                raise error
            announcements = [
                AnnouncementRead.model_validate({**row, "creator_name": creator_name(row)})
                for row in rows or []
            ]
        except BackendError as exc:
            logger.error("Error fetching announcements: %s", exc)
            return [], failure("Error fetching announcements", exc.message)
        except ValidationError as exc:
            logger.error("Malformed announcement row: %s", exc)
            return [], failure("Error fetching announcements", "Received malformed data")
        return announcements, None

    @classmethod
    async def create_announcement(
        cls, backend: BackendClient, user_id: str, data: AnnouncementCreate
    ) -> Toast:
        if not data.title or not data.content:
            return failure("Missing fields", "Please fill in both title and content")
        try:
            _, error = await backend.insert(
                ANNOUNCEMENTS_TABLE,
                [{"title": data.title, "content": data.content, "created_by": user_id}],
            )
            if error:
                raise error
        except BackendError as exc:
            logger.error("Error creating announcement: %s", exc)
            return failure("Error creating announcement", exc.message)
        logger.info("User %s posted announcement '%s'", user_id, data.title)
        return success("Announcement created", "Your announcement has been posted successfully")

    @classmethod
    async def delete_announcement(
        cls, backend: BackendClient, user_id: str, announcement_id: str
    ) -> Toast:
        """Delete one of the viewer's own announcements."""
        try:
            deleted, error = await backend.delete(
                ANNOUNCEMENTS_TABLE,
                filters={"id": announcement_id, "created_by": user_id},
                returning=True,
            )
            if error:
                raise error
        except BackendError as exc:
            logger.error("Error deleting announcement %s: %s", announcement_id, exc)
            return failure("Error deleting announcement", exc.message)
        if not deleted:
            logger.warning("User %s cannot delete announcement %s", user_id, announcement_id)
            return failure("Error deleting announcement", ANNOUNCEMENT_NOT_DELETABLE)
        return success("Announcement deleted", "The announcement has been removed")
