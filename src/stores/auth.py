from __future__ import annotations

import asyncio
from typing import Optional, Tuple

from backend.client import BackendClient
from backend.models import AuthSession, AuthUser
from stores.observable import Observable
from utils.logger import get_logger

_logger = get_logger(__name__)

AuthEvent = Tuple[str, Optional[AuthSession]]


class AuthStore(Observable):
    """
    Holds the current session for the lifetime of the app.

    Listeners are called with the new AuthUser (or None) whenever the
    signed-in identity changes. Session pushes from the backend are queued
    and applied one at a time by a single worker task.
    """

    def __init__(self, backend: BackendClient) -> None:
        super().__init__()
        self._backend = backend
        self.session: Optional[AuthSession] = None
        self.loading = True

        self._events: Optional[asyncio.Queue[AuthEvent]] = None
        self._worker: Optional[asyncio.Task] = None
        self._subscription = None

    @property
    def user(self) -> Optional[AuthUser]:
        return self.session.user if self.session else None

    async def start(self) -> None:
        """Restore any persisted session, then follow backend pushes."""
        try:
            session = await self._backend.get_session()
        except Exception as exc:
            _logger.error(f"Auth initialization error: {exc!r}")
            session = None
        await self._set_session(session)

        self._events = asyncio.Queue()
        self._worker = asyncio.create_task(self._drain_events())
        self._subscription = self._backend.on_auth_state_change(self._enqueue)
        self.loading = False

    async def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

    async def wait_idle(self) -> None:
        """Return once every queued session push has been applied."""
        if self._events is not None:
            await self._events.join()

    # ---------------------------
    # Actions
    # ---------------------------

    async def sign_in(self, email: str, password: str) -> Optional[AuthUser]:
        try:
            session = await self._backend.sign_in_with_password(email, password)
        except Exception as exc:
            _logger.error(f"Email sign in error: {exc!r}")
            raise
        await self._set_session(session)
        return self.user

    async def sign_up(self, email: str, password: str) -> Optional[AuthUser]:
        """
        Register a new account. Returns the user when the backend signs them in
        right away, None when an email confirmation is pending.
        """
        try:
            session = await self._backend.sign_up(email, password)
        except Exception as exc:
            _logger.error(f"Email sign up error: {exc!r}")
            raise
        if session is not None:
            await self._set_session(session)
        return session.user if session else None

    async def start_oauth(self, provider: str = "google") -> str:
        """URL the user opens in a browser to sign in with the provider."""
        try:
            return await self._backend.oauth_url(provider)
        except Exception as exc:
            _logger.error(f"{provider} sign in error: {exc!r}")
            raise

    async def complete_oauth(self, auth_code: str) -> Optional[AuthUser]:
        try:
            session = await self._backend.exchange_code_for_session(auth_code.strip())
        except Exception as exc:
            _logger.error(f"OAuth code exchange error: {exc!r}")
            raise
        await self._set_session(session)
        return self.user

    async def sign_out(self) -> None:
        try:
            await self._backend.sign_out()
        except Exception as exc:
            _logger.error(f"Sign out error: {exc!r}")
            raise
        await self._set_session(None)

    # ---------------------------
    # Session pushes
    # ---------------------------

    def _enqueue(self, event: str, session: Optional[AuthSession]) -> None:
        if self._events is not None:
            self._events.put_nowait((event, session))

    async def _drain_events(self) -> None:
        while True:
            event, session = await self._events.get()
            try:
                await self._handle_event(event, session)
            except Exception as exc:
                # keep the worker alive for the next push
                _logger.error(f"Auth listener failed on {event}: {exc!r}")
            finally:
                self._events.task_done()

    async def _handle_event(self, event: str, session: Optional[AuthSession]) -> None:
        _logger.info(
            f"Auth state changed: {event} {session.user.email if session else ''}"
        )
        try:
            if event in ("SIGNED_IN", "USER_UPDATED", "INITIAL_SESSION"):
                await self._set_session(session)
            elif event == "SIGNED_OUT":
                await self._set_session(None)
            elif event == "TOKEN_REFRESHED":
                # the pushed payload is not trusted; read the stored session back
                await self._set_session(await self._backend.get_session())
        except Exception as exc:
            _logger.error(f"Auth state change error: {exc!r}")
            await self._set_session(None)
        finally:
            self.loading = False

    async def _set_session(self, session: Optional[AuthSession]) -> None:
        previous = self.user
        self.session = session
        current = self.user
        if (previous.id if previous else None) != (current.id if current else None):
            await self._emit(current)
