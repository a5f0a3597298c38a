"""
Supabase backend client for Compendium.

Talks to the PostgREST table holding one snapshot row per user and
to the GoTrue auth endpoints. Errors are raised as BackendError;
callers in the sync layer decide what is fatal.
"""

import logging
from typing import Any

import httpx

from compendium.config import get_supabase_settings
from compendium.models import User

logger = logging.getLogger(__name__)

# PostgREST code for "single row requested, zero returned"
NO_ROWS_CODE = "PGRST116"

SINGLE_OBJECT = "application/vnd.pgrst.object+json"


class BackendError(Exception):
    """An error response from the backend."""

    def __init__(self, message: str, code: str | None = None, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status

    def __str__(self) -> str:
        if self.code:
            return f"{self.message} ({self.code})"
        return self.message


def raise_for_error(response: httpx.Response) -> None:
    """Raise BackendError for a non-2xx response, using the body's code if any."""
    if response.is_success:
        return

    try:
        body = response.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        body = {}

    code = body.get("code") or body.get("error_code") or body.get("error")
    message = (
        body.get("message")
        or body.get("msg")
        or body.get("error_description")
        or response.text
        or f"HTTP {response.status_code}"
    )
    raise BackendError(
        str(message),
        code=str(code) if code is not None else None,
        status=response.status_code,
    )


def json_object(response: httpx.Response) -> dict[str, Any]:
    """Decode a successful response body that must be a JSON object."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        raise BackendError(
            "Malformed response body, expected a JSON object",
            status=response.status_code,
        )
    return body


class AuthClient:
    """Session endpoints. Holds the current access token and user."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        anon_key: str,
        access_token: str | None = None,
    ):
        self._client = client
        self._anon_key = anon_key
        self.access_token = access_token
        self.user: User | None = None

    def authorization(self) -> dict[str, str]:
        """Bearer header for the user token, or the anon key when logged out."""
        return {"Authorization": f"Bearer {self.access_token or self._anon_key}"}

    async def get_session(self) -> User | None:
        """
        Resolve the user behind the current access token.

        Returns None when there is no token or the backend rejects it.
        """
        if not self.access_token:
            return None

        response = await self._client.get("/auth/v1/user", headers=self.authorization())
        if response.status_code in (401, 403):
            logger.info("Access token rejected, treating session as logged out")
            self.user = None
            return None

        raise_for_error(response)
        self.user = User.model_validate(json_object(response))
        return self.user

    async def sign_in_with_password(self, email: str, password: str) -> User:
        """Exchange credentials for an access token."""
        response = await self._client.post(
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        raise_for_error(response)

        payload = json_object(response)
        self.access_token = payload["access_token"]
        self.user = User.model_validate(payload["user"])
        return self.user

    async def sign_out(self) -> None:
        """
        Revoke the current session.

        The local token is dropped even if the backend call fails.
        """
        token = self.access_token
        self.access_token = None
        self.user = None
        if not token:
            return

        response = await self._client.post(
            "/auth/v1/logout",
            headers={"Authorization": f"Bearer {token}"},
        )
        raise_for_error(response)


class SupabaseClient:
    """Async client for the user snapshot table and auth."""

    def __init__(
        self,
        url: str | None,
        anon_key: str | None,
        access_token: str | None = None,
        table: str = "user_data",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not url or not anon_key:
            raise ValueError(
                "Supabase URL or anon key not found. "
                "Set SUPABASE_URL and SUPABASE_ANON_KEY env vars or add to config."
            )

        self.url = url.rstrip("/")
        self.table = table
        self._client = httpx.AsyncClient(
            base_url=self.url,
            headers={"apikey": anon_key},
            timeout=timeout,
            transport=transport,
        )
        self.auth = AuthClient(self._client, anon_key, access_token)

    @classmethod
    def from_config(cls, config: dict[str, Any] | None = None) -> "SupabaseClient":
        settings = get_supabase_settings(config)
        return cls(
            url=settings["url"],
            anon_key=settings["anon_key"],
            access_token=settings["access_token"],
            table=settings["table"],
            timeout=settings["timeout"],
        )

    async def fetch_user_data(self, user_id: str) -> Any:
        """
        Fetch the snapshot payload for a user.

        Raises BackendError with code NO_ROWS_CODE if the user has no row.
        """
        response = await self._client.get(
            f"/rest/v1/{self.table}",
            params={"select": "data", "user_id": f"eq.{user_id}"},
            headers={**self.auth.authorization(), "Accept": SINGLE_OBJECT},
        )
        raise_for_error(response)
        return json_object(response).get("data")

    async def upsert_user_data(self, user_id: str, data: dict[str, Any], updated_at: str) -> None:
        """Insert or replace the user's row (one row per user_id)."""
        response = await self._client.post(
            f"/rest/v1/{self.table}",
            params={"on_conflict": "user_id"},
            json=[{"user_id": user_id, "data": data, "updated_at": updated_at}],
            headers={
                **self.auth.authorization(),
                "Prefer": "resolution=merge-duplicates,return=minimal",
            },
        )
        raise_for_error(response)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "SupabaseClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
