"""Wire calls to the authentication service."""

from __future__ import annotations

import httpx

from ytscribe.api.http import build_headers, error_detail
from ytscribe.core.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NetworkError,
    NotFoundError,
    ScribeError,
    ServerError,
    ValidationError,
)
from ytscribe.core.models import CredentialPair, UserProfile


class AuthClient:
    """Register, log in, refresh and fetch the current user.

    Args:
        http: Shared async HTTP client.
        base_url: Server root (no trailing slash).
        api_key: Value for the X-API-Key header.
        prefix: Path prefix of the auth routes.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str,
        api_key: str | None = None,
        prefix: str = "/api/v1/auth",
    ):
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.prefix = prefix

    async def register(
        self, email: str, password: str, name: str | None = None
    ) -> tuple[CredentialPair, UserProfile | None]:
        body = {"email": email, "password": password}
        if name:
            body["name"] = name
        data = await self._request("POST", "/register", json=body)
        return _parse_pair(data), _parse_user(data)

    async def login(self, email: str, password: str) -> tuple[CredentialPair, UserProfile | None]:
        data = await self._request("POST", "/login", json={"email": email, "password": password})
        return _parse_pair(data), _parse_user(data)

    async def refresh(self, refresh_token: str) -> CredentialPair:
        """Exchange a refresh token for a new pair.

        Servers that do not rotate refresh tokens omit ``refresh_token``;
        the old one is kept in that case.
        """
        data = await self._request("POST", "/refresh", json={"refresh_token": refresh_token})
        pair = CredentialPair.from_values(
            data.get("access_token"), data.get("refresh_token") or refresh_token
        )
        if pair is None:
            raise ServerError("Refresh response did not contain an access token.", status=200)
        return pair

    async def me(self, access_token: str) -> UserProfile:
        data = await self._request("GET", "/me", access_token=access_token)
        return UserProfile.from_dict(data)

    async def _request(
        self,
        method: str,
        path: str,
        json: dict | None = None,
        access_token: str | None = None,
    ) -> dict:
        url = f"{self.base_url}{self.prefix}{path}"
        headers = build_headers(self.api_key, access_token)
        if json is None:
            headers.pop("Content-Type")
        try:
            response = await self.http.request(method, url, json=json, headers=headers)
        except httpx.TransportError as e:
            raise NetworkError(
                f"Cannot reach backend server at {self.base_url}. Make sure the server is running.",
                detail=str(e),
            ) from e

        if not response.is_success:
            raise _auth_error(response, self.base_url)
        try:
            data = response.json()
        except ValueError as e:
            raise ServerError(
                "Server error: The auth service returned an invalid response.",
                status=response.status_code,
                detail=str(e),
            ) from e
        if not isinstance(data, dict):
            raise ServerError(
                "Server error: The auth service returned an invalid response.",
                status=response.status_code,
                detail=f"Expected a JSON object, got {type(data).__name__}",
            )
        return data


def _auth_error(response: httpx.Response, base_url: str) -> ScribeError:
    """Map an auth-route failure into the error taxonomy."""
    status = response.status_code
    detail = error_detail(response)

    if status == 400:
        return ValidationError(detail or "Invalid request.", status=status, detail=detail)
    if status == 401:
        return AuthenticationError(detail or "Invalid credentials.", status=status, detail=detail)
    if status == 403:
        return AuthorizationError(detail or "Access denied.", status=status, detail=detail)
    if status == 404:
        return NotFoundError(
            f"Auth endpoint not found on {base_url}. The server may not support authentication.",
            status=status,
            detail=detail,
        )
    if status == 409:
        return ConflictError(detail or "User already exists.", status=status, detail=detail)
    if status == 422:
        return ValidationError(detail or "Validation error.", status=status, detail=detail)
    return ServerError(detail or f"Error {status} from {base_url}", status=status, detail=detail)


def _parse_pair(data: dict) -> CredentialPair:
    pair = CredentialPair.from_values(data.get("access_token"), data.get("refresh_token"))
    if pair is None:
        raise ServerError("Auth response did not contain a token pair.", status=200)
    return pair


def _parse_user(data: dict) -> UserProfile | None:
    user = data.get("user")
    return UserProfile.from_dict(user) if isinstance(user, dict) else None
