# the one configured handle to the hosted backend; every call goes through retry
import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from supabase import AsyncClient, AsyncClientOptions, acreate_client

from backend.models import AuthSession
from backend.retry import RetryPolicy
from backend.session_store import SqliteSessionStorage
from utils.config import Settings
from utils.logger import get_logger

_logger = get_logger(__name__)

T = TypeVar("T")

AuthListener = Callable[[str, Optional[AuthSession]], None]


def _is_missing_refresh_token(exc: BaseException) -> bool:
    code = getattr(exc, "code", None)
    return code == "refresh_token_not_found" or "refresh_token_not_found" in str(exc)


class BackendClient:
    """
    Wraps the Supabase async client: auth, tables and storage.

    Table and storage calls are passed as zero-argument callables so a retry
    rebuilds the request from scratch.
    """

    def __init__(
        self,
        client: AsyncClient,
        retry: Optional[RetryPolicy] = None,
        health_check_timeout: float = 5.0,
        oauth_redirect_url: Optional[str] = None,
    ) -> None:
        self.client = client
        self.retry = retry or RetryPolicy()
        self.health_check_timeout = health_check_timeout
        self.oauth_redirect_url = oauth_redirect_url

    @classmethod
    async def connect(cls, settings: Settings) -> "BackendClient":
        settings.validate()
        options = AsyncClientOptions(
            schema="public",
            headers={"X-Client-Info": settings.CLIENT_NAME},
            auto_refresh_token=True,
            persist_session=True,
            storage=SqliteSessionStorage(settings.SESSION_DB_PATH),
            flow_type="pkce",
            postgrest_client_timeout=settings.REQUEST_TIMEOUT,
            storage_client_timeout=int(settings.REQUEST_TIMEOUT),
        )
        client = await acreate_client(
            settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY, options=options
        )
        _logger.info(f"Connected client for {settings.SUPABASE_URL}")
        return cls(
            client,
            retry=RetryPolicy(
                max_retries=settings.MAX_RETRIES,
                base_delay=settings.RETRY_BASE_DELAY,
            ),
            health_check_timeout=settings.HEALTH_CHECK_TIMEOUT,
            oauth_redirect_url=settings.OAUTH_REDIRECT_URL,
        )

    # ---------------------------
    # Tables & storage
    # ---------------------------

    def table(self, name: str):
        return self.client.table(name)

    def bucket(self, name: str):
        return self.client.storage.from_(name)

    async def execute(self, request: Callable[[], Awaitable[T]]) -> T:
        """Run a table or storage request under the retry policy."""
        return await self.retry.call(request)

    async def health_check(self) -> bool:
        """True when a one-row products read answers within the timeout."""
        try:
            await asyncio.wait_for(
                self.table("products").select("id").limit(1).execute(),
                timeout=self.health_check_timeout,
            )
            return True
        except asyncio.TimeoutError:
            _logger.error("Connection check timed out")
        except Exception as exc:
            _logger.error(f"Connection check failed: {exc!r}")
        return False

    # ---------------------------
    # Auth
    # ---------------------------

    async def get_session(self) -> Optional[AuthSession]:
        try:
            session = await self.retry.call(self.client.auth.get_session)
        except Exception as exc:
            if _is_missing_refresh_token(exc):
                _logger.warning("Stored refresh token is gone, signing out")
                await self.sign_out()
                return None
            raise
        return AuthSession.from_supabase(session)

    async def refresh_session(self) -> Optional[AuthSession]:
        try:
            response = await self.retry.call(self.client.auth.refresh_session)
        except Exception as exc:
            if _is_missing_refresh_token(exc):
                await self.sign_out()
                return None
            raise
        return AuthSession.from_supabase(response.session)

    async def sign_in_with_password(self, email: str, password: str) -> Optional[AuthSession]:
        response = await self.retry.call(
            lambda: self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        )
        return AuthSession.from_supabase(response.session)

    async def sign_up(self, email: str, password: str) -> Optional[AuthSession]:
        credentials: Dict[str, Any] = {"email": email, "password": password}
        if self.oauth_redirect_url:
            credentials["options"] = {"email_redirect_to": self.oauth_redirect_url}
        response = await self.retry.call(lambda: self.client.auth.sign_up(credentials))
        # with email confirmation on, there is no session until the link is used
        return AuthSession.from_supabase(response.session)

    async def oauth_url(self, provider: str = "google") -> str:
        options: Dict[str, Any] = {
            "query_params": {"access_type": "offline", "prompt": "consent"}
        }
        if self.oauth_redirect_url:
            options["redirect_to"] = self.oauth_redirect_url
        response = await self.retry.call(
            lambda: self.client.auth.sign_in_with_oauth(
                {"provider": provider, "options": options}
            )
        )
        return response.url

    async def exchange_code_for_session(self, auth_code: str) -> Optional[AuthSession]:
        response = await self.retry.call(
            lambda: self.client.auth.exchange_code_for_session({"auth_code": auth_code})
        )
        return AuthSession.from_supabase(response.session)

    async def sign_out(self) -> None:
        # the auth client also drops the persisted session from storage
        await self.retry.call(self.client.auth.sign_out)

    def on_auth_state_change(self, listener: AuthListener):
        """Subscribe to session pushes; the returned object has unsubscribe()."""

        def relay(event, session) -> None:
            listener(str(event), AuthSession.from_supabase(session))

        return self.client.auth.on_auth_state_change(relay)
