"""
Pytest configuration and shared fixtures for Compendium tests.
"""

from typing import Any, Callable

import pytest

from compendium.backend import NO_ROWS_CODE, BackendError
from compendium.models import User
from compendium.session import UserSession
from compendium.storage import LocalStorage
from compendium.store import CompendiumStore


class FakeAuth:
    """Stands in for AuthClient."""

    def __init__(self, session_user: User | None = None):
        self.user: User | None = None
        self.session_user = session_user
        self.session_error: Exception | None = None
        self.sign_out_error: Exception | None = None
        self.get_session_calls = 0
        self.sign_out_calls = 0

    async def get_session(self) -> User | None:
        self.get_session_calls += 1
        if self.session_error:
            raise self.session_error
        self.user = self.session_user
        return self.session_user

    async def sign_out(self) -> None:
        self.sign_out_calls += 1
        self.user = None
        if self.sign_out_error:
            raise self.sign_out_error


class FakeBackend:
    """In-memory user_data table with the SupabaseClient surface."""

    def __init__(self, session_user: User | None = None):
        self.auth = FakeAuth(session_user)
        self.rows: dict[str, dict[str, Any]] = {}
        self.fetch_error: Exception | None = None
        self.upsert_error: Exception | None = None
        self.fetch_calls: list[str] = []
        self.upserts: list[tuple[str, dict[str, Any], str]] = []
        self.closed = False
        self.on_fetch: Callable[[], None] | None = None
        self.on_upsert: Callable[[], None] | None = None

    async def fetch_user_data(self, user_id: str) -> Any:
        self.fetch_calls.append(user_id)
        if self.on_fetch:
            self.on_fetch()
        if self.fetch_error:
            raise self.fetch_error
        if user_id not in self.rows:
            raise BackendError(
                "JSON object requested, multiple (or no) rows returned",
                code=NO_ROWS_CODE,
                status=406,
            )
        return self.rows[user_id]["data"]

    async def upsert_user_data(self, user_id: str, data: dict[str, Any], updated_at: str) -> None:
        if self.on_upsert:
            self.on_upsert()
        if self.upsert_error:
            raise self.upsert_error
        self.upserts.append((user_id, data, updated_at))
        self.rows[user_id] = {"data": data, "updated_at": updated_at}

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def user():
    return User(id="user-1", email="test@example.com")


@pytest.fixture
def backend(user):
    """Backend whose current session resolves to `user`."""
    return FakeBackend(session_user=user)


@pytest.fixture
def anonymous_backend():
    return FakeBackend(session_user=None)


@pytest.fixture
def store():
    return CompendiumStore()


@pytest.fixture
def session():
    return UserSession()


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(db_path=tmp_path / "compendium.db")


@pytest.fixture
def note_data():
    return {
        "id": "note-1",
        "title": "Test Note",
        "content": "Test content",
        "createdAt": "2026-01-01T00:00:00Z",
        "updatedAt": "2026-01-01T00:00:00Z",
    }


@pytest.fixture
def appointment_data():
    return {
        "id": "apt-1",
        "title": "Meeting",
        "date": "2026-01-20",
        "time": "10:00",
        "description": "Team meeting",
        "createdAt": "2026-01-01T00:00:00Z",
    }


@pytest.fixture
def goal_data():
    return {
        "id": "goal-1",
        "title": "Learn Python",
        "description": "Master asyncio",
        "progress": 50,
        "createdAt": "2026-01-01T00:00:00Z",
        "updatedAt": "2026-01-01T00:00:00Z",
    }


@pytest.fixture
def snapshot_data(note_data, appointment_data, goal_data):
    return {
        "notes": [note_data],
        "appointments": [appointment_data],
        "goals": [goal_data],
    }
