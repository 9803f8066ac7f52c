"""
Pydantic models for user profiles.

The ``profiles`` table holds the school-facing data of an account
(names, role and, for students, their class details).  Rows are keyed
by the auth user's id.
"""

from typing import List, Optional

from pydantic import BaseModel

from .event import EventRead
from .notification import Toast


class ProfileRead(BaseModel):
    user_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[str] = None
    student_id: Optional[str] = None
    grade: Optional[str] = None
    section: Optional[str] = None
    phone: Optional[str] = None

    model_config = {
        "from_attributes": True,
        "extra": "ignore",
    }

    @property
    def can_manage_events(self) -> bool:
        return self.role != "participant"


class ProfileResponse(BaseModel):
    profile: Optional[ProfileRead]
    events: List[EventRead]
    notifications: List[Toast] = []
