from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from backend.client import BackendClient
from backend.models import AuthUser, Catalog
from stores.auth import AuthStore
from stores.user_data import UserDataStore
from utils.config import Settings


@dataclass
class AppState:
    """
    Application state handed to every screen through ``app.state``.

    Fields:
      - backend: the configured backend client (with retry)
      - auth: current session and sign in/out actions
      - user_data: favorites, cart and search history of the signed-in user
      - catalog: the last product catalog shown, live or fallback
    """

    backend: BackendClient
    auth: AuthStore
    user_data: UserDataStore
    catalog: Catalog = field(default_factory=Catalog)

    @classmethod
    def create(cls, backend: BackendClient) -> "AppState":
        auth = AuthStore(backend)
        return cls(backend=backend, auth=auth, user_data=UserDataStore(backend, auth))

    @classmethod
    async def connect(cls, settings: Settings) -> "AppState":
        return cls.create(await BackendClient.connect(settings))

    @property
    def user(self) -> Optional[AuthUser]:
        return self.auth.user

    async def start(self) -> None:
        await self.auth.start()

    async def stop(self) -> None:
        """Tear down on unmount: stop auth pushes and drop per-user data."""
        await self.auth.stop()
        self.user_data.close()
        self.user_data.clear()
