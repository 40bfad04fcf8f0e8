"""JWT claim decoding and expiry checks.

Tokens are only inspected for their ``exp`` claim; signatures are the
server's concern and are never verified client-side.
"""

from __future__ import annotations

import base64
import binascii
import json
import time

from ytscribe.core.errors import MalformedCredential


def decode_claims(token: str) -> dict:
    """Decode the payload section of a JWT without verifying it.

    Raises:
        MalformedCredential: If the token is not a three-part JWT or the
            payload is not base64url-encoded JSON.
    """
    parts = token.split(".") if isinstance(token, str) else []
    if len(parts) != 3 or not parts[1]:
        raise MalformedCredential("Token is not a JWT")

    payload = parts[1]
    padded = payload + "=" * (-len(payload) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded)
        claims = json.loads(raw.decode("utf-8"))
    except (binascii.Error, ValueError) as e:
        raise MalformedCredential(f"Token payload could not be decoded: {e}") from e

    if not isinstance(claims, dict):
        raise MalformedCredential("Token payload is not a JSON object")
    return claims


def token_expiry(token: str) -> float:
    """Return the ``exp`` claim as a Unix timestamp."""
    exp = decode_claims(token).get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        raise MalformedCredential("Token has no numeric exp claim")
    return float(exp)


def is_expiring_soon(token: str, buffer_seconds: float = 60, now: float | None = None) -> bool:
    """Check whether a token expires within ``buffer_seconds`` (or already has).

    Raises:
        MalformedCredential: If the expiry claim cannot be read. Callers
            treat that as expired.
    """
    current = time.time() if now is None else now
    return current >= token_expiry(token) - buffer_seconds


def is_expired_or_invalid(token: str, buffer_seconds: float = 60, now: float | None = None) -> bool:
    """Like is_expiring_soon, but an undecodable token counts as expired."""
    try:
        return is_expiring_soon(token, buffer_seconds, now=now)
    except MalformedCredential:
        return True
