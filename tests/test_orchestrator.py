"""Tests for request classification, retries and token injection."""

import asyncio

import httpx
import pytest

from ytscribe.api.orchestrator import RequestOrchestrator, RequestSpec
from ytscribe.auth.client import AuthClient
from ytscribe.auth.manager import TokenLifecycleManager
from ytscribe.core.config import RetryConfig
from ytscribe.core.errors import (
    Classification,
    GatewayError,
    NetworkError,
    NotFoundError,
    RateLimited,
    ServerError,
    ServiceUnavailable,
    SessionExpired,
    ValidationError,
)
from ytscribe.core.models import CredentialPair

REQUEST = RequestSpec(method="POST", path="/api/v1/extract", json={"url": "x"})


def _sequence(*responses):
    """Handler that replays responses (or raises exceptions) in order."""
    queue = list(responses)
    calls = []

    def handler(request):
        calls.append(request)
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    return handler, calls


def _run(mock_http, handler, fake_sleep, base_url, tokens=None, on_retry=None, auth=False):
    async def scenario():
        async with mock_http(handler) as http:
            orchestrator = RequestOrchestrator(
                http, base_url, api_key="key", tokens=tokens, sleep=fake_sleep
            )
            return await orchestrator.execute(REQUEST, auth_required=auth, on_retry=on_retry)

    return asyncio.run(scenario())


class TestNonRetryable:
    @pytest.mark.parametrize("status", [400, 401, 403, 404, 422])
    def test_single_attempt(self, mock_http, fake_sleep, base_url, status):
        """Non-retryable statuses fail after one attempt."""
        handler, calls = _sequence(httpx.Response(status, json={"detail": "nope"}))

        with pytest.raises(Exception) as exc:
            _run(mock_http, handler, fake_sleep, base_url)

        error = exc.value
        assert len(calls) == 1
        assert fake_sleep.calls == []
        assert error.classification is Classification.NON_RETRYABLE
        assert error.retries_exhausted is False
        assert error.status == status
        assert len(error.attempts) == 1

    def test_message_uses_detail(self, mock_http, fake_sleep, base_url):
        """The error message uses the server detail."""
        handler, _ = _sequence(httpx.Response(404, json={"detail": "No transcript found"}))
        with pytest.raises(NotFoundError, match="Not found: No transcript found"):
            _run(mock_http, handler, fake_sleep, base_url)

    def test_plain_text_body(self, mock_http, fake_sleep, base_url):
        """A plain-text error body becomes the detail."""
        handler, _ = _sequence(httpx.Response(422, text="bad url"))
        with pytest.raises(ValidationError, match="Validation error: bad url"):
            _run(mock_http, handler, fake_sleep, base_url)


class TestRetryable:
    @pytest.mark.parametrize(
        "status, error_cls",
        [(429, RateLimited), (500, ServerError), (502, GatewayError), (503, ServiceUnavailable)],
    )
    def test_four_attempts_then_exhausted(self, mock_http, fake_sleep, base_url, status, error_cls):
        """Retryable failures stop after four attempts."""
        handler, calls = _sequence(*[httpx.Response(status) for _ in range(4)])

        with pytest.raises(error_cls) as exc:
            _run(mock_http, handler, fake_sleep, base_url)

        assert len(calls) == 4
        assert fake_sleep.calls == [2.0, 4.0, 8.0]
        assert exc.value.retries_exhausted is True
        assert [a.delay_ms for a in exc.value.attempts] == [2000, 4000, 8000, 0]

    def test_three_503_then_success(self, mock_http, fake_sleep, base_url):
        """Three 503s then a 200 succeeds."""
        handler, calls = _sequence(
            httpx.Response(503),
            httpx.Response(503),
            httpx.Response(503),
            httpx.Response(200, json={"video_id": "abc"}),
        )
        events = []

        response = _run(mock_http, handler, fake_sleep, base_url, on_retry=events.append)

        assert response.payload == {"video_id": "abc"}
        assert len(calls) == 4
        assert [e.delay_ms for e in events] == [2000, 4000, 8000]
        assert [e.attempt_index for e in events] == [1, 2, 3]
        assert all(e.max_attempts == 3 for e in events)
        assert events[0].last_error_message.startswith("Service unavailable")
        assert response.attempts[-1].classification is None

    def test_network_error_is_retried(self, mock_http, fake_sleep, base_url):
        """Transport errors are retried."""
        handler, calls = _sequence(
            httpx.ConnectError("refused"), httpx.Response(200, json={"ok": True})
        )
        response = _run(mock_http, handler, fake_sleep, base_url)
        assert response.payload == {"ok": True}
        assert fake_sleep.calls == [2.0]

    def test_network_exhaustion(self, mock_http, fake_sleep, base_url):
        """Repeated transport errors raise NetworkError."""
        handler, _ = _sequence(*[httpx.ReadTimeout("slow") for _ in range(4)])
        with pytest.raises(NetworkError) as exc:
            _run(mock_http, handler, fake_sleep, base_url)
        assert exc.value.status == 0
        assert exc.value.retries_exhausted is True

    def test_retryable_then_non_retryable_stops(self, mock_http, fake_sleep, base_url):
        """A non-retryable status ends the retries."""
        handler, calls = _sequence(httpx.Response(500), httpx.Response(404))
        with pytest.raises(NotFoundError) as exc:
            _run(mock_http, handler, fake_sleep, base_url)
        assert len(calls) == 2
        assert exc.value.retries_exhausted is False

    def test_unknown_status_is_retried(self, mock_http, fake_sleep, base_url):
        """Unknown statuses are treated as retryable."""
        handler, _ = _sequence(httpx.Response(418), httpx.Response(200, json={}))
        _run(mock_http, handler, fake_sleep, base_url)
        assert fake_sleep.calls == [2.0]

    def test_custom_policy(self, mock_http, fake_sleep, base_url):
        """A custom retry policy is honoured."""
        handler, calls = _sequence(*[httpx.Response(500) for _ in range(2)])

        async def scenario():
            async with mock_http(handler) as http:
                orchestrator = RequestOrchestrator(
                    http,
                    base_url,
                    retry=RetryConfig(max_retries=1, base_delay_ms=100),
                    sleep=fake_sleep,
                )
                await orchestrator.execute(REQUEST)

        with pytest.raises(ServerError):
            asyncio.run(scenario())
        assert fake_sleep.calls == [0.1]


class TestAuthentication:
    def test_headers_without_token(self, mock_http, fake_sleep, base_url, store):
        """Anonymous requests send only the API key."""
        handler, calls = _sequence(httpx.Response(200, json={}))

        async def scenario():
            async with mock_http(handler) as http:
                tokens = TokenLifecycleManager(AuthClient(http, base_url), store)
                orchestrator = RequestOrchestrator(http, base_url, "key", tokens, sleep=fake_sleep)
                await orchestrator.execute(REQUEST, auth_required=True)

        asyncio.run(scenario())
        request = calls[0]
        assert "Authorization" not in request.headers
        assert request.headers["X-API-Key"] == "key"
        assert request.headers["Content-Type"] == "application/json"

    def test_bearer_token_sent(self, mock_http, fake_sleep, base_url, store, make_token):
        """Authenticated requests send a bearer token."""
        access = make_token(3600)
        store.save_credentials(CredentialPair(access, make_token(86400)))
        handler, calls = _sequence(httpx.Response(200, json={}))

        async def scenario():
            async with mock_http(handler) as http:
                tokens = TokenLifecycleManager(AuthClient(http, base_url), store)
                tokens.restore()
                orchestrator = RequestOrchestrator(http, base_url, "key", tokens, sleep=fake_sleep)
                await orchestrator.execute(REQUEST, auth_required=True)

        asyncio.run(scenario())
        assert calls[0].headers["Authorization"] == f"Bearer {access}"

    def test_token_not_requested_when_not_required(
        self, mock_http, fake_sleep, base_url, store, make_token
    ):
        """No token is fetched for anonymous routes."""
        store.save_credentials(CredentialPair(make_token(3600), make_token(86400)))
        handler, calls = _sequence(httpx.Response(200, json={}))

        async def scenario():
            async with mock_http(handler) as http:
                tokens = TokenLifecycleManager(AuthClient(http, base_url), store)
                tokens.restore()
                orchestrator = RequestOrchestrator(http, base_url, "key", tokens, sleep=fake_sleep)
                await orchestrator.execute(REQUEST, auth_required=False)

        asyncio.run(scenario())
        assert "Authorization" not in calls[0].headers

    def test_session_expired_is_not_retried(
        self, mock_http, fake_sleep, base_url, store, make_token
    ):
        """Session expiry stops the request at once."""
        store.save_credentials(CredentialPair(make_token(-10), make_token(86400)))
        paths = []

        def handler(request):
            paths.append(request.url.path)
            return httpx.Response(401, json={"detail": "revoked"})

        async def scenario():
            async with mock_http(handler) as http:
                tokens = TokenLifecycleManager(AuthClient(http, base_url), store)
                tokens.restore()
                orchestrator = RequestOrchestrator(http, base_url, "key", tokens, sleep=fake_sleep)
                await orchestrator.execute(REQUEST, auth_required=True)

        with pytest.raises(SessionExpired):
            asyncio.run(scenario())
        assert paths == ["/api/v1/auth/refresh"]
        assert fake_sleep.calls == []
