"""
Client for the hosted database REST endpoint.

The backend-as-a-service exposes every table through a PostgREST style
HTTP interface under ``/rest/v1/<table>``.  This module wraps the small
subset of that interface the application needs:

* :meth:`BackendClient.select` - row selection with ``eq`` filters,
  ordering, embedded (foreign-key) resources and single-row mode.
* :meth:`BackendClient.count` - exact row count without fetching rows.
* :meth:`BackendClient.insert` - insert one or more rows.
* :meth:`BackendClient.delete` - delete rows matching ``eq`` filters.

HTTP failures are never raised.  Every operation returns a tuple
``(data, error)`` where ``error`` is a :class:`BackendError` (or ``None``
on success).  Callers decide how to surface the error; the services
raise it inside their own ``try`` block and turn it into a toast.

Requests carry the anonymous API key in the ``apikey`` header.  The
``Authorization`` header holds the signed-in user's access token when
the client was derived with :meth:`BackendClient.with_token`, otherwise
the anonymous key.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx


logger = logging.getLogger(__name__)

Filters = Dict[str, Any]


class BackendError(Exception):
    """Error reported by the backend (or by the transport).

    Attributes:
        message: Human readable message, as returned by the backend.
        status_code: HTTP status code or ``None`` for transport errors.
        code: Backend error code (for PostgREST the SQLSTATE, e.g.
            ``23505`` for a unique violation).
        details: Optional extra detail string.
        hint: Optional hint string.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[str] = None,
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details
        self.hint = hint

    @classmethod
    def from_response(cls, response: httpx.Response) -> "BackendError":
        """Build an error from a failed HTTP response.

        Both PostgREST (``message``/``code``) and auth style bodies
        (``msg``, ``error_description``, ``error``) are understood.
        """
        body: Any = None
        try:
            body = response.json()
        except ValueError:
            body = None
        message = ""
        code = details = hint = None
        if isinstance(body, dict):
            message = (
                body.get("message")
                or body.get("msg")
                or body.get("error_description")
                or body.get("error")
                or ""
            )
            if body.get("code") is not None:
                code = str(body["code"])
            details = body.get("details")
            hint = body.get("hint")
        if not message:
            message = response.text or f"HTTP {response.status_code}"
        return cls(
            message,
            status_code=response.status_code,
            code=code,
            details=details,
            hint=hint,
        )

    def __repr__(self) -> str:
        return f"BackendError(status_code={self.status_code!r}, code={self.code!r}, message={self.message!r})"


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _filter_params(filters: Optional[Filters]) -> Dict[str, str]:
    """Translate ``{"column": value}`` into PostgREST ``eq`` filters."""
    params: Dict[str, str] = {}
    for column, value in (filters or {}).items():
        if value is None:
            params[column] = "is.null"
        else:
            params[column] = f"eq.{_format_value(value)}"
    return params


def _compact_columns(columns: str) -> str:
    # The select grammar does not allow whitespace outside quoted names.
    return "".join(columns.split())


def parse_content_range(header: Optional[str]) -> Optional[int]:
    """Return the total from a ``Content-Range`` header such as ``0-9/42``.

    ``None`` is returned when the header is missing or the total is
    unknown (``*``).
    """
    if not header or "/" not in header:
        return None
    total = header.rsplit("/", 1)[1].strip()
    if not total.isdigit():
        return None
    return int(total)


class BackendClient:
    """Asynchronous client for the backend REST endpoint."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        access_token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 15.0,
    ) -> None:
        """Initialise the client.

        Args:
            base_url: Project URL, e.g. ``https://example.supabase.co``.
            api_key: Anonymous API key of the project.
            access_token: Optional user access token.  When set it is sent
                as the bearer token instead of the API key.
            client: Optional shared ``httpx.AsyncClient``.  If not supplied
                one is created and owned by this instance.
            timeout: Request timeout in seconds for an owned client.
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.access_token = access_token
        self.client = client or httpx.AsyncClient(timeout=timeout)

    def with_token(self, access_token: Optional[str]) -> "BackendClient":
        """Return a client acting on behalf of a signed-in user.

        The underlying HTTP connection pool is shared.
        """
        return BackendClient(
            base_url=self.base_url,
            api_key=self.api_key,
            access_token=access_token,
            client=self.client,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token or self.api_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json_body: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Tuple[Optional[httpx.Response], Optional[BackendError]]:
        """Perform a request against ``/rest/v1/<table>``.

        Returns:
            A tuple ``(response, error)``.  ``response`` is the successful
            response, ``error`` describes a failed one.
        """
        url = f"{self.base_url}/rest/v1/{table}"
        try:
            logger.debug("Sending %s request to %s params=%s", method, url, params)
            response = await self.client.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self._headers(headers),
            )
        except httpx.HTTPError as exc:
            logger.warning("Backend request %s %s failed: %s", method, url, exc)
            return None, BackendError(str(exc) or exc.__class__.__name__)
        if response.is_error:
            return None, BackendError.from_response(response)
        return response, None

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        if not response.content:
            return None
        return response.json()

    # ------------------------------------------------------------------
    # Table operations
    # ------------------------------------------------------------------
    async def select(
        self,
        table: str,
        columns: str = "*",
        *,
        filters: Optional[Filters] = None,
        order: Optional[str] = None,
        ascending: bool = True,
        single: bool = False,
    ) -> Tuple[Any, Optional[BackendError]]:
        """Select rows from ``table``.

        ``columns`` uses the select grammar, including embedded
        resources such as ``"event_id, events (*)"``.  With ``single``
        the backend must find exactly one row and a dict is returned
        instead of a list.
        """
        params = {"select": _compact_columns(columns)}
        params.update(_filter_params(filters))
        if order:
            params["order"] = f"{order}.{'asc' if ascending else 'desc'}"
        headers = {"Accept": "application/vnd.pgrst.object+json"} if single else None
        response, error = await self._request("GET", table, params=params, headers=headers)
        if error:
            return None, error
        return self._json(response), None

    async def count(
        self, table: str, *, filters: Optional[Filters] = None
    ) -> Tuple[Optional[int], Optional[BackendError]]:
        """Return the exact number of rows in ``table`` matching ``filters``."""
        params = {"select": "*"}
        params.update(_filter_params(filters))
        response, error = await self._request(
            "HEAD", table, params=params, headers={"Prefer": "count=exact"}
        )
        if error:
            return None, error
        return parse_content_range(response.headers.get("content-range")), None

    async def insert(
        self,
        table: str,
        rows: List[Dict[str, Any]],
        *,
        returning: bool = False,
    ) -> Tuple[Any, Optional[BackendError]]:
        """Insert ``rows`` into ``table``.

        With ``returning`` the inserted rows are returned, otherwise
        ``None``.
        """
        prefer = "return=representation" if returning else "return=minimal"
        response, error = await self._request(
            "POST", table, json_body=rows, headers={"Prefer": prefer}
        )
        if error:
            return None, error
        return self._json(response), None

    async def delete(
        self, table: str, *, filters: Filters, returning: bool = False
    ) -> Tuple[Any, Optional[BackendError]]:
        """Delete rows from ``table`` matching ``filters``.

        An empty filter set is refused; an unfiltered delete is never
        what a caller means.  With ``returning`` the deleted rows are
        returned (an empty list when nothing matched).
        """
        if not filters:
            raise ValueError("delete requires at least one filter")
        prefer = "return=representation" if returning else "return=minimal"
        response, error = await self._request(
            "DELETE", table, params=_filter_params(filters), headers={"Prefer": prefer}
        )
        if error:
            return None, error
        return self._json(response), None
