"""Submission lifecycle — wiring plus the state a front end renders.

A TranscriptSession turns one URL submission into cached, renderable
transcript state. A newer submission supersedes an older one: the older
call is left to finish but its result (or error) is ignored.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum

import httpx

from ytscribe.api.diagnostics import Diagnostics
from ytscribe.api.extract import ExtractionClient
from ytscribe.api.orchestrator import RequestOrchestrator, Sleep
from ytscribe.auth.client import AuthClient
from ytscribe.auth.manager import TokenLifecycleManager
from ytscribe.auth.storage import StateStore
from ytscribe.core.config import ScribeConfig
from ytscribe.core.errors import ScribeError, error_kind
from ytscribe.core.events import EventCallback
from ytscribe.core.models import ExtractionResult, TranscriptVariant
from ytscribe.transcript.cache import ExtractionCache
from ytscribe.transcript.formats import render


class SessionStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class Services:
    """Everything a front end needs, built from one config."""

    config: ScribeConfig
    store: StateStore
    tokens: TokenLifecycleManager
    orchestrator: RequestOrchestrator
    extractor: ExtractionClient
    diagnostics: Diagnostics


def create_services(
    config: ScribeConfig,
    http: httpx.AsyncClient,
    store: StateStore | None = None,
    sleep: Sleep = asyncio.sleep,
) -> Services:
    """Wire the auth, request and extraction layers around one HTTP client.

    Persisted credentials are restored before returning.
    """
    store = store if store is not None else StateStore(config.state_file)
    api = config.api
    auth_client = AuthClient(http, api.base_url, api.api_key, prefix=api.auth_prefix)
    tokens = TokenLifecycleManager(
        auth_client, store, buffer_seconds=config.auth.expiry_buffer_seconds
    )
    tokens.restore()
    orchestrator = RequestOrchestrator(
        http, api.base_url, api.api_key, tokens=tokens, retry=config.retry, sleep=sleep
    )
    extractor = ExtractionClient(
        orchestrator, empty_result_retries=config.retry.empty_result_retries
    )
    return Services(
        config=config,
        store=store,
        tokens=tokens,
        orchestrator=orchestrator,
        extractor=extractor,
        diagnostics=Diagnostics(http, api),
    )


class TranscriptSession:
    """Tracks one user's submissions and the transcript currently shown."""

    def __init__(self, extractor: ExtractionClient, cache: ExtractionCache | None = None):
        self.extractor = extractor
        self.cache = cache if cache is not None else ExtractionCache()
        self.status = SessionStatus.IDLE
        self.error: ScribeError | None = None
        self.error_type: str | None = None

    @property
    def result(self) -> ExtractionResult | None:
        return self.cache.current

    @property
    def transcript(self) -> TranscriptVariant | None:
        return self.cache.selected

    async def submit(
        self,
        url: str,
        fmt: str = "json",
        language_preference: str | None = None,
        on_retry: EventCallback | None = None,
    ) -> ExtractionResult | None:
        """Extract a transcript and make it the current result.

        Returns None if a newer submission superseded this one while it
        was in flight.

        Raises:
            ScribeError: If this submission is still current and failed.
        """
        generation = self.cache.begin()
        self.status = SessionStatus.LOADING
        self.error = None
        self.error_type = None

        try:
            result = await self.extractor.extract(
                url, fmt, language_preference=language_preference, on_retry=on_retry
            )
        except ScribeError as e:
            if not self.cache.is_current(generation):
                return None
            self.status = SessionStatus.ERROR
            self.error = e
            self.error_type = error_kind(e)
            raise

        if not self.cache.store(result, generation):
            return None
        self.status = SessionStatus.SUCCESS
        return result

    def switch_language(self, code: str) -> TranscriptVariant | None:
        """Show another language from the cached result; no network I/O."""
        return self.cache.select_language(code)

    def content(self, fmt: str) -> str | None:
        """Current transcript rendered in ``fmt``, or None if nothing is loaded."""
        result = self.cache.current
        if result is None:
            return None
        if result.legacy is not None:
            return render(result.legacy, fmt)
        variant = self.cache.selected
        if variant is None:
            return None
        return render(variant, fmt)

    def clear_error(self) -> None:
        self.error = None
        self.error_type = None
        if self.status is SessionStatus.ERROR:
            self.status = SessionStatus.IDLE

    def reset(self) -> None:
        """Drop all state; any in-flight submission becomes stale."""
        self.cache.begin()
        self.cache.clear()
        self.status = SessionStatus.IDLE
        self.error = None
        self.error_type = None
