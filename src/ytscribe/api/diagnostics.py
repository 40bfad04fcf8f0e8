"""Connectivity and health probes for the diagnostics command.

Every probe runs under a single deadline covering connect, send and the
whole body read, and resolves to a failed report instead of raising or
hanging.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field

import httpx

from ytscribe.api.extract import EXTRACT_PATH
from ytscribe.api.http import build_headers
from ytscribe.core.config import ApiConfig

PROBE_TIMEOUT = 5.0


@dataclass
class ConnectivityReport:
    connected: bool
    latency_ms: int | None = None
    status: int | None = None
    error: str | None = None


@dataclass
class HealthReport:
    healthy: bool
    data: dict = field(default_factory=dict)
    status: int | None = None
    error: str | None = None


@dataclass
class ApiAuthReport:
    authenticated: bool
    status: int | None = None
    error: str | None = None


def config_summary(config: ApiConfig) -> dict[str, object]:
    """Display-safe view of the API settings."""
    return {
        "environment": config.environment,
        "base_url": config.base_url,
        "has_api_key": bool(config.api_key),
        "api_key_preview": config.api_key_preview,
    }


class ProbeFailed(Exception):
    """A probe request failed or ran past its deadline."""


class Diagnostics:
    def __init__(self, http: httpx.AsyncClient, config: ApiConfig):
        self.http = http
        self.config = config
        self.timeout = config.probe_timeout or PROBE_TIMEOUT

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Send one probe request with a hard deadline.

        Raises:
            ProbeFailed: On any transport error or when the deadline passes.
        """
        try:
            async with asyncio.timeout(self.timeout):
                return await self.http.request(
                    method, f"{self.config.base_url}{path}", timeout=self.timeout, **kwargs
                )
        except TimeoutError as e:
            raise ProbeFailed(f"Timed out after {self.timeout:g}s") from e
        except httpx.HTTPError as e:
            raise ProbeFailed(str(e) or type(e).__name__) from e

    async def check_connectivity(self) -> ConnectivityReport:
        """GET the server root and measure latency."""
        start = time.perf_counter()
        try:
            response = await self._request("GET", "/")
        except ProbeFailed as e:
            return ConnectivityReport(connected=False, error=str(e))
        latency = round((time.perf_counter() - start) * 1000)
        return ConnectivityReport(connected=True, latency_ms=latency, status=response.status_code)

    async def check_health(self) -> HealthReport:
        try:
            response = await self._request("GET", "/health")
        except ProbeFailed as e:
            return HealthReport(healthy=False, error=str(e))

        if not response.is_success:
            return HealthReport(healthy=False, status=response.status_code)
        try:
            data = response.json()
        except ValueError:
            data = {}
        return HealthReport(
            healthy=True,
            data=data if isinstance(data, dict) else {},
            status=response.status_code,
        )

    async def check_api_auth(self) -> ApiAuthReport:
        """Send an empty extraction request to test the API key.

        422 means the key was accepted and only the body failed validation;
        401 means the key was rejected.
        """
        try:
            response = await self._request(
                "POST",
                EXTRACT_PATH,
                json={"url": "", "format": "json"},
                headers=build_headers(self.config.api_key),
            )
        except ProbeFailed as e:
            return ApiAuthReport(authenticated=False, error=str(e))
        return ApiAuthReport(
            authenticated=response.status_code != 401, status=response.status_code
        )
