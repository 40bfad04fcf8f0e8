"""Shared test fixtures."""

import base64
import json
import time
from pathlib import Path

import httpx
import pytest

from ytscribe.auth.storage import StateStore

FIXTURES_DIR = Path(__file__).parent / "fixtures"
BASE_URL = "https://api.test"


def _b64(obj: dict) -> str:
    return base64.urlsafe_b64encode(json.dumps(obj).encode()).rstrip(b"=").decode()


def _make_token(expires_in: float, **claims: object) -> str:
    payload = {"exp": time.time() + expires_in, **claims}
    return f"{_b64({'alg': 'HS256', 'typ': 'JWT'})}.{_b64(payload)}.sig"


class FakeSleep:
    """Records backoff delays instead of sleeping."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def segmented_payload(fixtures_dir: Path) -> dict:
    return json.loads((fixtures_dir / "segmented_response.json").read_text())


@pytest.fixture
def make_token():
    """Build an unsigned JWT expiring ``expires_in`` seconds from now."""
    return _make_token


@pytest.fixture
def store() -> StateStore:
    return StateStore()


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def base_url() -> str:
    return BASE_URL


@pytest.fixture
def mock_http():
    """Factory for an AsyncClient whose requests go to ``handler``."""

    def factory(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory
