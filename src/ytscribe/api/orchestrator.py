"""Request orchestrator — one logical call through a classify-and-retry policy.

Each call makes up to ``max_retries + 1`` attempts. Failures are classified
by status: 400/401/403/404/422 stop immediately; 429/5xx, unknown statuses
and transport failures are retried after an exponential backoff
(2s, 4s, 8s by default). A RetryEvent is emitted before every backoff.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable

import httpx
from rich.markup import escape

from ytscribe.api.http import build_headers, error_detail
from ytscribe.auth.manager import TokenLifecycleManager
from ytscribe.core.config import RetryConfig
from ytscribe.core.errors import NetworkError, ScribeError, ServerError, error_for_status
from ytscribe.core.events import EventCallback, RequestAttempt, RetryEvent
from ytscribe.utils.console import console

Sleep = Callable[[float], Awaitable[None]]


@dataclass
class RequestSpec:
    """Description of one outbound call, relative to the server root."""

    method: str
    path: str
    json: dict | None = None
    params: dict | None = None
    timeout: float | None = None


@dataclass
class OrchestratedResponse:
    payload: object
    status: int
    attempts: list[RequestAttempt] = field(default_factory=list)


class RequestOrchestrator:
    """Issues requests with token injection, error classification and retries.

    Args:
        http: Shared async HTTP client.
        base_url: Server root (no trailing slash).
        api_key: Value for the X-API-Key header.
        tokens: Token manager consulted before each attempt of an
            authenticated call. Without one, calls go out unauthenticated.
        retry: Retry policy.
        sleep: Awaitable used for backoff; injectable for tests.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str,
        api_key: str | None = None,
        tokens: TokenLifecycleManager | None = None,
        retry: RetryConfig | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.tokens = tokens
        self.retry = retry or RetryConfig()
        self._sleep = sleep

    async def execute(
        self,
        request: RequestSpec,
        auth_required: bool = False,
        on_retry: EventCallback | None = None,
    ) -> OrchestratedResponse:
        """Run a request through the retry policy.

        Raises:
            ScribeError: The last classified error. ``retries_exhausted`` is
                set when the retry budget ran out, and ``attempts`` lists
                every attempt made.
            SessionExpired: If a token refresh was rejected (never retried).
        """
        max_retries = self.retry.max_retries
        attempts: list[RequestAttempt] = []

        for attempt in range(max_retries + 1):
            try:
                response = await self._send(request, auth_required)
                payload = _decode_json(response)
            except ScribeError as e:
                error = e
            else:
                attempts.append(
                    RequestAttempt(attempt, None, 0, status=response.status_code)
                )
                return OrchestratedResponse(payload, response.status_code, attempts)

            final = not error.retryable or attempt == max_retries
            delay_ms = 0 if final else self.retry.delay_for(attempt)
            attempts.append(
                RequestAttempt(
                    attempt, error.classification.value, delay_ms, error.status, error.message
                )
            )
            if not error.retryable:
                error.attempts = attempts
                raise error
            if final:
                break

            console.print(
                f"[yellow]{escape(error.message)}[/yellow] "
                f"[dim]Retrying in {delay_ms / 1000:.0f}s ({attempt + 1}/{max_retries})...[/dim]"
            )
            if on_retry:
                on_retry(
                    RetryEvent(
                        attempt_index=attempt + 1,
                        max_attempts=max_retries,
                        delay_ms=delay_ms,
                        last_error_message=error.message,
                    )
                )
            await self._sleep(delay_ms / 1000)

        error.retries_exhausted = True
        error.attempts = attempts
        raise error

    async def _send(self, request: RequestSpec, auth_required: bool) -> httpx.Response:
        token = None
        if auth_required and self.tokens is not None:
            token = await self.tokens.get_valid_access_token()

        headers = build_headers(self.api_key, token)
        kwargs: dict = {"headers": headers}
        if request.json is not None:
            kwargs["json"] = request.json
        if request.params is not None:
            kwargs["params"] = request.params
        if request.timeout is not None:
            kwargs["timeout"] = request.timeout

        try:
            response = await self.http.request(
                request.method, f"{self.base_url}{request.path}", **kwargs
            )
        except httpx.TransportError as e:
            raise NetworkError(
                "Network error: Unable to connect to the server. "
                "Please check your internet connection.",
                detail=str(e),
            ) from e

        if not response.is_success:
            raise error_for_status(response.status_code, error_detail(response))
        return response


def _decode_json(response: httpx.Response) -> object:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as e:
        raise ServerError(
            "Server error: The server returned an invalid response.",
            status=response.status_code,
            detail=str(e),
        ) from e
