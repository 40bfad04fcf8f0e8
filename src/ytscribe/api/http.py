"""HTTP helpers shared by the auth and extraction clients."""

from __future__ import annotations

import json

import httpx


def build_headers(api_key: str | None, access_token: str | None = None) -> dict[str, str]:
    """Standard request headers. Authorization is only sent when a token exists."""
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["X-API-Key"] = api_key
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    return headers


def error_detail(response: httpx.Response) -> str:
    """Extract a human-readable detail from an error response body.

    Tries JSON ``detail``/``message``/``error`` first, then the JSON dump,
    then the raw text.
    """
    try:
        data = response.json()
    except ValueError:
        return response.text.strip()

    if isinstance(data, dict):
        for key in ("detail", "message", "error"):
            value = data.get(key)
            if value:
                return value if isinstance(value, str) else json.dumps(value)
    return json.dumps(data)
