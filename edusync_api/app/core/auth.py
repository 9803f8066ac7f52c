"""
Client for the hosted authentication endpoint.

Accounts, passwords and sessions are owned by the backend's auth
service (GoTrue conventions, under ``/auth/v1``).  This module only
forwards sign-up, sign-in, sign-out and session lookup calls.  Like
:class:`~edusync_api.app.core.backend.BackendClient`, every method
returns ``(data, error)`` rather than raising.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from .backend import BackendError


logger = logging.getLogger(__name__)


class AuthClient:
    """Asynchronous client for the auth endpoint."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 15.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json_body: Any = None,
        access_token: Optional[str] = None,
    ) -> Tuple[Any, Optional[BackendError]]:
        url = f"{self.base_url}/auth/v1{path}"
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {access_token or self.api_key}",
        }
        try:
            response = await self.client.request(
                method, url, params=params, json=json_body, headers=headers
            )
        except httpx.HTTPError as exc:
            logger.warning("Auth request %s %s failed: %s", method, url, exc)
            return None, BackendError(str(exc) or exc.__class__.__name__)
        if response.is_error:
            return None, BackendError.from_response(response)
        if not response.content:
            return None, None
        return response.json(), None

    async def sign_up(
        self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None
    ) -> Tuple[Any, Optional[BackendError]]:
        """Create an account.  ``metadata`` is stored as user metadata.

        Depending on the project settings the response is either a user
        awaiting email confirmation or a full session.
        """
        payload = {"email": email, "password": password, "data": metadata or {}}
        return await self._request("POST", "/signup", json_body=payload)

    async def sign_in(self, email: str, password: str) -> Tuple[Any, Optional[BackendError]]:
        """Exchange email and password for a session."""
        return await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json_body={"email": email, "password": password},
        )

    async def sign_out(self, access_token: str) -> Tuple[None, Optional[BackendError]]:
        """Revoke the session identified by ``access_token``."""
        _, error = await self._request("POST", "/logout", access_token=access_token)
        return None, error

    async def get_user(self, access_token: str) -> Tuple[Any, Optional[BackendError]]:
        """Resolve an access token to the user it belongs to."""
        return await self._request("GET", "/user", access_token=access_token)
