"""Tests for connectivity and health probes."""

import asyncio
import time

import httpx
import pytest

from ytscribe.api.diagnostics import Diagnostics, config_summary
from ytscribe.core.config import ApiConfig

CONFIG = ApiConfig(production_url="https://api.test", api_key="abcdef")


def _probe(mock_http, handler, check):
    async def scenario():
        async with mock_http(handler) as http:
            return await getattr(Diagnostics(http, CONFIG), check)()

    return asyncio.run(scenario())


def test_connectivity_ok(mock_http):
    """A reachable server reports status and latency."""
    report = _probe(mock_http, lambda r: httpx.Response(200), "check_connectivity")
    assert report.connected
    assert report.status == 200
    assert report.latency_ms >= 0


def test_connectivity_failure_is_reported(mock_http):
    """Connection failures land in the report."""

    def handler(request):
        raise httpx.ConnectTimeout("timed out")

    report = _probe(mock_http, handler, "check_connectivity")
    assert not report.connected
    assert "timed out" in report.error


def test_health_reports_body(mock_http):
    """The health body is returned in the report."""

    def handler(request):
        assert request.url.path == "/health"
        return httpx.Response(200, json={"status": "ok", "version": "1.2"})

    report = _probe(mock_http, handler, "check_health")
    assert report.healthy
    assert report.data["version"] == "1.2"


def test_unhealthy_status(mock_http):
    """A non-2xx health status is unhealthy."""
    report = _probe(mock_http, lambda r: httpx.Response(503), "check_health")
    assert not report.healthy
    assert report.status == 503


def test_api_auth_accepts_validation_error(mock_http):
    """A 422 means the key was accepted."""

    def handler(request):
        assert request.headers["X-API-Key"] == "abcdef"
        return httpx.Response(422, json={"detail": "url required"})

    report = _probe(mock_http, handler, "check_api_auth")
    assert report.authenticated
    assert report.status == 422


def test_api_auth_rejected(mock_http):
    """A 401 means the key was rejected."""
    report = _probe(mock_http, lambda r: httpx.Response(401), "check_api_auth")
    assert not report.authenticated


def test_config_summary_masks_key():
    """The config summary never shows the full key."""
    summary = config_summary(CONFIG)
    assert summary == {
        "environment": "production",
        "base_url": "https://api.test",
        "has_api_key": True,
        "api_key_preview": "ab***",
    }


@pytest.mark.parametrize("check", ["check_connectivity", "check_health", "check_api_auth"])
def test_slow_server_hits_deadline(mock_http, check):
    """A stalled server fails the check at the deadline."""
    config = ApiConfig(production_url="https://api.test", probe_timeout=0.05)

    async def handler(request):
        await asyncio.sleep(5)
        return httpx.Response(200, json={})

    async def scenario():
        async with mock_http(handler) as http:
            start = time.perf_counter()
            report = await getattr(Diagnostics(http, config), check)()
            return report, time.perf_counter() - start

    report, elapsed = asyncio.run(scenario())
    assert elapsed < 1.0
    assert "Timed out after 0.05s" in report.error
    assert not any(
        getattr(report, flag, False) for flag in ("connected", "healthy", "authenticated")
    )
