import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from edusync_api.app.core.backend import BackendError
from edusync_api.app.core.security import get_auth_client, get_backend
from edusync_api.app.main import create_app
from edusync_api.app.services.event_service import DUPLICATE_REGISTRATION_MESSAGE


STUDENT_ID = "00000000-0000-0000-0000-000000000001"
TEACHER_ID = "00000000-0000-0000-0000-000000000002"
PARTICIPANT_ID = "00000000-0000-0000-0000-000000000003"

STUDENT_TOKEN = "student-token"
TEACHER_TOKEN = "teacher-token"
PARTICIPANT_TOKEN = "participant-token"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def make_event(**overrides: Any) -> Dict[str, Any]:
    event = {
        "id": str(uuid.uuid4()),
        "title": "Science Fair",
        "description": "Projects from every grade",
        "date": "2025-11-14",
        "time": "10:00:00",
        "location": "Main Hall",
        "category": "Academic",
        "max_registrations": 50,
        "status": "upcoming",
        "created_by": TEACHER_ID,
        "created_at": "2025-10-01T08:00:00+00:00",
        "updated_at": "2025-10-01T08:00:00+00:00",
    }
    event.update(overrides)
    return event


class FakeBackend:
    """In-memory stand-in for the hosted REST backend.

    Implements the subset of the select grammar the services use
    (``events (*)`` and the announcement creator join) and the unique
    constraint on registrations.
    """

    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            "events": [],
            "event_registrations": [],
            "profiles": [],
            "announcements": [],
        }
        self.failures: Dict[Tuple[str, str], BackendError] = {}
        self.calls: List[Tuple[str, str]] = []
        self.tokens: List[Optional[str]] = []

    def with_token(self, access_token: Optional[str]) -> "FakeBackend":
        self.tokens.append(access_token)
        return self

    def fail(self, operation: str, table: str, message: str = "connection refused", **kwargs: Any) -> None:
        self.failures[(operation, table)] = BackendError(message, **kwargs)

    def _check(self, operation: str, table: str) -> Optional[BackendError]:
        self.calls.append((operation, table))
        return self.failures.get((operation, table))

    @staticmethod
    def _matches(row: Dict[str, Any], filters: Optional[Dict[str, Any]]) -> bool:
        return all(str(row.get(key)) == str(value) for key, value in (filters or {}).items())

    def _profile(self, user_id: Any) -> Optional[Dict[str, Any]]:
        for profile in self.tables["profiles"]:
            if profile["user_id"] == user_id:
                return profile
        return None

    async def select(self, table, columns="*", *, filters=None, order=None, ascending=True, single=False):
        error = self._check("select", table)
        if error:
            return None, error
        rows = [dict(row) for row in self.tables[table] if self._matches(row, filters)]
        if order:
            rows.sort(key=lambda row: str(row.get(order)), reverse=not ascending)
        compact = "".join(columns.split())
        if "events(*)" in compact:
            for row in rows:
                row["events"] = next(
                    (dict(e) for e in self.tables["events"] if e["id"] == row["event_id"]), None
                )
        if "creator:profiles" in compact:
            for row in rows:
                profile = self._profile(row.get("created_by"))
                row["creator"] = (
                    {"first_name": profile["first_name"], "last_name": profile["last_name"]}
                    if profile
                    else None
                )
        if single:
            if len(rows) != 1:
                return None, BackendError(
                    "JSON object requested, multiple (or no) rows returned",
                    status_code=406,
                    code="PGRST116",
                )
            return rows[0], None
        return rows, None

    async def count(self, table, *, filters=None):
        error = self._check("count", table)
        if error:
            return None, error
        return sum(1 for row in self.tables[table] if self._matches(row, filters)), None

    async def insert(self, table, rows, *, returning=False):
        error = self._check("insert", table)
        if error:
            return None, error
        stored = []
        for row in rows:
            if table == "event_registrations" and any(
                r["event_id"] == row["event_id"] and r["user_id"] == row["user_id"]
                for r in self.tables[table]
            ):
                return None, BackendError(DUPLICATE_REGISTRATION_MESSAGE, status_code=409, code="23505")
            row = dict(row)
            row.setdefault("id", str(uuid.uuid4()))
            row.setdefault("created_at", _now())
            if table == "event_registrations":
                row.setdefault("registered_at", _now())
            stored.append(row)
        self.tables[table].extend(stored)
        return (stored if returning else None), None

    async def delete(self, table, *, filters, returning=False):
        error = self._check("delete", table)
        if error:
            return None, error
        deleted = [row for row in self.tables[table] if self._matches(row, filters)]
        self.tables[table] = [row for row in self.tables[table] if not self._matches(row, filters)]
        return (deleted if returning else None), None


class FakeAuth:
    """In-memory stand-in for the hosted auth service."""

    def __init__(self) -> None:
        self.sessions: Dict[str, Dict[str, Any]] = {}
        self.accounts: Dict[str, Tuple[str, Dict[str, Any]]] = {}
        self.signed_out: List[str] = []
        self.signups: List[Dict[str, Any]] = []

    def add_user(self, token: str, user_id: str, email: str, password: str = "secret123") -> None:
        user = {"id": user_id, "email": email, "user_metadata": {}}
        self.sessions[token] = user
        self.accounts[email] = (password, user)

    async def get_user(self, access_token):
        user = self.sessions.get(access_token)
        if user is None:
            return None, BackendError("invalid JWT", status_code=401)
        return user, None

    async def sign_in(self, email, password):
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            return None, BackendError("Invalid login credentials", status_code=400)
        token = f"token-{account[1]['id']}"
        self.sessions[token] = account[1]
        return {
            "access_token": token,
            "token_type": "bearer",
            "expires_in": 3600,
            "refresh_token": "refresh",
            "user": account[1],
        }, None

    async def sign_up(self, email, password, metadata=None):
        if email in self.accounts:
            return None, BackendError("User already registered", status_code=422)
        user = {"id": str(uuid.uuid4()), "email": email, "user_metadata": metadata or {}}
        self.accounts[email] = (password, user)
        self.signups.append({"email": email, "metadata": metadata or {}})
        return user, None

    async def sign_out(self, access_token):
        self.signed_out.append(access_token)
        self.sessions.pop(access_token, None)
        return None, None


@pytest.fixture
def backend() -> FakeBackend:
    fake = FakeBackend()
    fake.tables["profiles"].extend(
        [
            {"user_id": STUDENT_ID, "first_name": "Ada", "last_name": "Lovelace", "role": "student"},
            {"user_id": TEACHER_ID, "first_name": "Alan", "last_name": "Turing", "role": "teacher"},
            {"user_id": PARTICIPANT_ID, "first_name": "Grace", "last_name": "Hopper", "role": "participant"},
        ]
    )
    return fake


@pytest.fixture
def auth() -> FakeAuth:
    fake = FakeAuth()
    fake.add_user(STUDENT_TOKEN, STUDENT_ID, "ada@school.edu")
    fake.add_user(TEACHER_TOKEN, TEACHER_ID, "alan@school.edu")
    fake.add_user(PARTICIPANT_TOKEN, PARTICIPANT_ID, "grace@example.com")
    return fake


@pytest.fixture
def student() -> Dict[str, Any]:
    return {"id": STUDENT_ID, "email": "ada@school.edu", "access_token": STUDENT_TOKEN}


@pytest.fixture
def app(backend: FakeBackend, auth: FakeAuth):
    application = create_app()
    application.dependency_overrides[get_backend] = lambda: backend
    application.dependency_overrides[get_auth_client] = lambda: auth
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
