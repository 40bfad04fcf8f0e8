"""Access/refresh credential lifecycle with single-flight refresh.

State machine::

    unauthenticated --login--> authenticated --access nears expiry--> refreshing
    refreshing --success--> authenticated
    refreshing --rejected, or refresh token itself expired--> unauthenticated

The manager is the only owner of the credential pair. Everything else asks
it for a token through get_valid_access_token().
"""

from __future__ import annotations

import asyncio
import time
from enum import Enum
from typing import Callable

from rich.markup import escape

from ytscribe.auth.client import AuthClient
from ytscribe.auth.storage import StateStore
from ytscribe.auth.tokens import is_expired_or_invalid, is_expiring_soon
from ytscribe.core.errors import NetworkError, ScribeError, SessionExpired
from ytscribe.core.models import CredentialPair, UserProfile
from ytscribe.utils.console import console


class AuthState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    REFRESHING = "refreshing"


class TokenLifecycleManager:
    """Owns the credential pair and keeps the access token valid.

    Args:
        client: Auth service client used for login/refresh/me.
        store: Durable state the pair and user profile are persisted to.
        buffer_seconds: Refresh this many seconds before the access token expires.
        clock: Returns the current Unix time; injectable for tests.
    """

    def __init__(
        self,
        client: AuthClient,
        store: StateStore,
        buffer_seconds: float = 60,
        clock: Callable[[], float] = time.time,
    ):
        self._client = client
        self._store = store
        self._buffer_seconds = buffer_seconds
        self._clock = clock
        self._pair: CredentialPair | None = None
        self._user: UserProfile | None = None
        self._refresh_task: asyncio.Task | None = None

    @property
    def state(self) -> AuthState:
        if self._refresh_task is not None and not self._refresh_task.done():
            return AuthState.REFRESHING
        if self._pair is not None:
            return AuthState.AUTHENTICATED
        return AuthState.UNAUTHENTICATED

    @property
    def is_authenticated(self) -> bool:
        return self._pair is not None

    @property
    def credentials(self) -> CredentialPair | None:
        return self._pair

    @property
    def user(self) -> UserProfile | None:
        return self._user

    def is_expiring_soon(self, token: str, buffer_seconds: float | None = None) -> bool:
        """Check a token against the manager's clock.

        Raises:
            MalformedCredential: If the token cannot be decoded.
        """
        buffer = self._buffer_seconds if buffer_seconds is None else buffer_seconds
        return is_expiring_soon(token, buffer, now=self._clock())

    def restore(self) -> AuthState:
        """Load persisted credentials at start-up.

        Keeps the pair if the access token is still valid, or if only the
        refresh token is (the first token request will refresh). Clears
        storage when both have expired.
        """
        pair = self._store.load_credentials()
        if pair is None:
            return self.state

        now = self._clock()
        if not is_expired_or_invalid(pair.access_token, self._buffer_seconds, now=now):
            self._pair = pair
            self._user = self._store.load_user()
        elif not is_expired_or_invalid(pair.refresh_token, 0, now=now):
            self._pair = pair
        else:
            self._store.clear_auth()
        return self.state

    async def login(self, email: str, password: str) -> UserProfile | None:
        pair, user = await self._client.login(email, password)
        self._set(pair, user)
        return user

    async def register(
        self, email: str, password: str, name: str | None = None
    ) -> UserProfile | None:
        pair, user = await self._client.register(email, password, name)
        self._set(pair, user)
        return user

    def logout(self) -> None:
        self._clear()

    async def get_valid_access_token(self) -> str | None:
        """Return a usable access token, refreshing it if needed.

        Returns None when no credentials are held; the caller proceeds
        unauthenticated.

        Raises:
            SessionExpired: If a needed refresh was rejected.
        """
        pair = self._pair
        if pair is None:
            return None
        if not is_expired_or_invalid(pair.access_token, self._buffer_seconds, now=self._clock()):
            return pair.access_token

        refreshed = await self.refresh()
        return refreshed.access_token

    async def refresh(self) -> CredentialPair:
        """Exchange the refresh token for a new pair (single-flight).

        Concurrent callers share the outstanding refresh instead of
        starting their own. Cancelling one caller leaves the shared refresh
        running for the others.
        """
        if self._refresh_task is None:
            self._refresh_task = asyncio.ensure_future(self._do_refresh())
        return await asyncio.shield(self._refresh_task)

    async def _do_refresh(self) -> CredentialPair:
        try:
            pair = self._pair
            if pair is None:
                raise SessionExpired("Not logged in.")

            if is_expired_or_invalid(pair.refresh_token, 0, now=self._clock()):
                self._clear()
                raise SessionExpired("Session expired. Please log in again.")

            console.print("[dim]Refreshing access token...[/dim]")
            try:
                new_pair = await self._client.refresh(pair.refresh_token)
            except NetworkError:
                # The refresh token was never rejected; keep it for the next try
                raise
            except ScribeError as e:
                self._clear()
                console.print("[yellow]Session expired, please log in again.[/yellow]")
                raise SessionExpired(
                    "Session expired. Please log in again.", status=e.status, detail=e.message
                ) from e

            self._pair = new_pair
            self._store.save_credentials(new_pair)
            return new_pair
        finally:
            self._refresh_task = None

    async def current_user(self, refresh: bool = False) -> UserProfile | None:
        """Return the cached profile, fetching it when missing.

        A failed fetch leaves credentials untouched; the next authenticated
        call decides whether the session is still good.
        """
        if self._user is not None and not refresh:
            return self._user

        token = await self.get_valid_access_token()
        if token is None:
            return None
        try:
            user = await self._client.me(token)
        except ScribeError as e:
            console.print(f"[dim]Could not load user profile: {escape(e.message)}[/dim]")
            return self._user

        self._user = user
        self._store.save_user(user)
        return user

    def _set(self, pair: CredentialPair, user: UserProfile | None) -> None:
        self._pair = pair
        self._store.save_credentials(pair)
        if user is not None:
            self._user = user
            self._store.save_user(user)

    def _clear(self) -> None:
        self._pair = None
        self._user = None
        self._store.clear_auth()
