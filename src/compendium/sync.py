"""
Sync between the in-memory store and the Supabase backend.

The whole store is exchanged as one snapshot keyed by user id.
Last writer wins; nothing here raises past its own boundary.
"""

import logging

import httpx
from pydantic import ValidationError

from compendium.backend import NO_ROWS_CODE, BackendError, SupabaseClient
from compendium.helpers import utc_now_iso
from compendium.models import ErrorKind, Snapshot, SyncResult, User
from compendium.session import UserSession
from compendium.storage import STORAGE_KEY, LocalStorage
from compendium.store import CompendiumStore

logger = logging.getLogger(__name__)


class CompendiumSync:
    """Loads, saves and resets user data against the backend."""

    def __init__(
        self,
        backend: SupabaseClient,
        store: CompendiumStore,
        session: UserSession,
        storage: LocalStorage | None = None,
    ):
        self.backend = backend
        self.store = store
        self.session = session
        self.storage = storage

    async def _resolve_user(self) -> User | None:
        """Session store first, then the auth client's cache, then the backend."""
        if self.session.user is not None:
            return self.session.user
        if self.backend.auth.user is not None:
            return self.backend.auth.user

        try:
            return await self.backend.auth.get_session()
        except (BackendError, httpx.HTTPError, ValidationError) as e:
            logger.error(f"Failed to resolve current session: {e}")
            return None

    async def get_user_id(self) -> str | None:
        user = await self._resolve_user()
        if user is None:
            return None
        return user.id or None

    async def load_user_data(self) -> SyncResult:
        """
        Replace local state with the user's remote snapshot.

        A user without a remote row is a success with no value.
        """
        user_id = await self.get_user_id()
        if not user_id:
            return SyncResult.fail(ErrorKind.NO_IDENTITY, "No authenticated user")

        self.store.is_loading = True
        try:
            try:
                data = await self.backend.fetch_user_data(user_id)
            except BackendError as e:
                if e.code == NO_ROWS_CODE:
                    logger.info(f"No remote data for user {user_id}, starting fresh")
                    return SyncResult.ok()
                logger.error(f"Error loading user data: {e}")
                return SyncResult.fail(ErrorKind.BACKEND_READ, str(e))
            except httpx.HTTPError as e:
                logger.error(f"Failed to load user data: {e}")
                return SyncResult.fail(ErrorKind.BACKEND_READ, str(e))

            if data is None:
                return SyncResult.ok()

            try:
                snapshot = Snapshot.model_validate(data)
            except ValidationError as e:
                logger.error(f"Remote user data is malformed: {e}")
                return SyncResult.fail(ErrorKind.MALFORMED_DATA, str(e))

            self.store.load_from_data(snapshot)
            self.save_local()
            return SyncResult.ok(snapshot)
        finally:
            self.store.is_loading = False

    async def save_user_data(self) -> SyncResult:
        """Upsert the whole store as the user's snapshot row."""
        user_id = await self.get_user_id()
        if not user_id:
            return SyncResult.fail(ErrorKind.NO_IDENTITY, "No authenticated user")

        self.store.is_saving = True
        try:
            snapshot = self.store.get_data_for_save()
            try:
                await self.backend.upsert_user_data(
                    user_id, snapshot.to_dict(), utc_now_iso()
                )
            except (BackendError, httpx.HTTPError) as e:
                logger.error(f"Error saving user data: {e}")
                return SyncResult.fail(ErrorKind.BACKEND_WRITE, str(e))

            self.store.last_synced_at = utc_now_iso()
            self.save_local()
            return SyncResult.ok(snapshot)
        finally:
            self.store.is_saving = False

    async def init_sync(self) -> SyncResult:
        """Load the logged-in user's data, or reset to the logged-out baseline."""
        user = await self._resolve_user()
        if user is not None and user.id:
            self.session.set_user(user)
            return await self.load_user_data()

        self.session.clear_user()
        self.store.clear_all()
        return SyncResult.fail(ErrorKind.NO_IDENTITY, "No authenticated user")

    async def logout(self) -> SyncResult:
        """
        Sign out and clear all local state.

        State is cleared even if the backend sign-out fails; that
        failure is reported as SIGN_OUT.
        """
        result = SyncResult.ok()
        try:
            await self.backend.auth.sign_out()
        except (BackendError, httpx.HTTPError) as e:
            logger.warning(f"Sign-out failed, clearing local state anyway: {e}")
            result = SyncResult.fail(ErrorKind.SIGN_OUT, str(e))

        self.session.clear_user()
        self.store.clear_all()
        if self.storage is not None:
            self.storage.clear_snapshot()
        return result

    # Local cache

    def save_local(self) -> bool:
        """Write the current store to the local cache."""
        if self.storage is None:
            return False
        return self.storage.save_snapshot(self.store.get_data_for_save())

    def restore_local(self) -> bool:
        """Load the cached snapshot into the store. Keeps last_synced_at."""
        if self.storage is None or not self.storage.exists(STORAGE_KEY):
            return False

        last_synced_at = self.store.last_synced_at
        self.store.load_from_data(self.storage.load_snapshot())
        self.store.last_synced_at = last_synced_at
        return True
