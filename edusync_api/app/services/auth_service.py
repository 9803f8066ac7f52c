"""
Business logic for authentication.

Passwords and sessions live in the hosted auth service; this module
validates the sign-up form, builds the profile metadata stored with
the account and reports every outcome as a toast.
"""

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ..core.auth import AuthClient
from ..schemas.auth import AuthResponse, AuthUser, Session, SignInRequest, SignUpRequest
from ..schemas.notification import Toast, failure, success


logger = logging.getLogger(__name__)


def signup_metadata(request: SignUpRequest) -> Dict[str, Any]:
    """Profile data stored as user metadata.

    Class details (student id, grade, section) are only kept for
    students.
    """
    is_student = request.role == "student"
    metadata = {
        "first_name": request.first_name,
        "last_name": request.last_name,
        "student_id": request.student_id if is_student else None,
        "grade": request.grade if is_student else None,
        "section": request.section if is_student else None,
        "phone": request.phone,
        "role": request.role,
    }
    return {key: value for key, value in metadata.items() if value is not None}


def _session_from(data: Any) -> Optional[Session]:
    # Sign-up returns a bare user until the email address is confirmed.
    if not isinstance(data, dict) or not data.get("access_token"):
        return None
    return Session.model_validate(data)


class AuthService:
    @classmethod
    async def sign_up(cls, auth: AuthClient, request: SignUpRequest) -> AuthResponse:
        if request.password != request.confirm_password:
            return AuthResponse(notification=failure("Sign up failed", "Passwords do not match"))
        data, error = await auth.sign_up(request.email, request.password, signup_metadata(request))
        if error:
            logger.error("Sign up of %s failed: %s", request.email, error)
            return AuthResponse(notification=failure("Sign up failed", error.message))
        logger.info("New %s account %s", request.role, request.email)
        try:
            session = _session_from(data)
        except ValidationError as exc:
            logger.warning("Unexpected sign up response for %s: %s", request.email, exc)
            session = None
        return AuthResponse(
            notification=success(
                "Account created", "Please check your email to verify your account"
            ),
            session=session,
        )

    @classmethod
    async def sign_in(cls, auth: AuthClient, request: SignInRequest) -> AuthResponse:
        data, error = await auth.sign_in(request.email, request.password)
        if error:
            logger.warning("Sign in of %s failed: %s", request.email, error)
            return AuthResponse(notification=failure("Sign in failed", error.message))
        try:
            session = Session.model_validate(data)
        except ValidationError as exc:
            logger.error("Unexpected sign in response for %s: %s", request.email, exc)
            return AuthResponse(notification=failure("Sign in failed", "Unexpected response from the server"))
        return AuthResponse(
            notification=success("Welcome back!", "You have successfully signed in"),
            session=session,
        )

    @classmethod
    async def sign_out(cls, auth: AuthClient, access_token: str) -> Toast:
        _, error = await auth.sign_out(access_token)
        if error:
            logger.error("Sign out failed: %s", error)
            return failure("Sign out failed", error.message)
        return success("Signed out", "You have been signed out")

    @classmethod
    async def resolve_user(cls, auth: AuthClient, access_token: str) -> Optional[AuthUser]:
        """Look up the user owning ``access_token``; ``None`` if it is not valid."""
        data, error = await auth.get_user(access_token)
        if error:
            logger.debug("Session lookup failed: %s", error)
            return None
        try:
            return AuthUser.model_validate(data)
        except ValidationError as exc:
            logger.warning("Unexpected session lookup response: %s", exc)
            return None
