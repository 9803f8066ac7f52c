"""
Pydantic models for authentication requests and sessions.

Students and participants can sign up; teachers are provisioned out of
band and only sign in.  The profile fields collected at sign-up are
sent to the auth service as user metadata.
"""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

from .notification import Toast
from .profile import ProfileRead


class SignUpRequest(BaseModel):
    email: str = Field(..., examples=["student@school.edu"])
    password: str = Field(..., min_length=6)
    confirm_password: str
    first_name: str = Field(..., examples=["Ada"])
    last_name: str = Field(..., examples=["Lovelace"])
    phone: Optional[str] = None
    role: Literal["student", "participant"] = "student"
    # Student only
    student_id: Optional[str] = None
    grade: Optional[str] = None
    section: Optional[str] = None


class SignInRequest(BaseModel):
    email: str
    password: str


class AuthUser(BaseModel):
    id: str
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = {}

    model_config = {
        "extra": "ignore",
    }


class Session(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    refresh_token: Optional[str] = None
    user: AuthUser

    model_config = {
        "extra": "ignore",
    }


class AuthResponse(BaseModel):
    notification: Toast
    session: Optional[Session] = None


class SessionInfo(BaseModel):
    user: AuthUser
    profile: Optional[ProfileRead] = None
