"""
Session context for Compendium.

One Compendium instance owns the stores, the local cache and the
backend client for the lifetime of a user session.
"""

import logging
from typing import Any

from compendium.backend import SupabaseClient
from compendium.config import get_storage_path, load_config, setup_logging
from compendium.models import SyncResult
from compendium.session import UserSession
from compendium.storage import LocalStorage
from compendium.store import CompendiumStore
from compendium.sync import CompendiumSync

logger = logging.getLogger(__name__)


class Compendium:
    """Wires store, session, storage and backend together."""

    def __init__(
        self,
        backend: SupabaseClient,
        storage: LocalStorage | None = None,
        store: CompendiumStore | None = None,
        session: UserSession | None = None,
    ):
        self.backend = backend
        self.storage = storage
        self.store = store or CompendiumStore()
        self.session = session or UserSession()
        self.sync = CompendiumSync(self.backend, self.store, self.session, self.storage)

    @classmethod
    def from_config(cls, config: dict[str, Any] | None = None) -> "Compendium":
        """Build a context from config.toml and the environment."""
        config = config or load_config()
        setup_logging(config)
        return cls(
            backend=SupabaseClient.from_config(config),
            storage=LocalStorage(get_storage_path(config)),
        )

    async def start(self) -> SyncResult:
        """Restore the local cache, then sync with the backend."""
        if self.sync.restore_local():
            logger.info(
                f"Restored {len(self.store.notes)} notes, "
                f"{len(self.store.appointments)} appointments, "
                f"{len(self.store.goals)} goals from local cache"
            )
        return await self.sync.init_sync()

    async def close(self) -> None:
        await self.backend.aclose()

    async def __aenter__(self) -> "Compendium":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
