"""Durable client state: credentials, cached user profile, API environment.

State lives in a single JSON file under fixed keys. Passing ``path=None``
keeps everything in memory, which is what tests use.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from ytscribe.core.models import CredentialPair, UserProfile

ACCESS_TOKEN_KEY = "access_token"
REFRESH_TOKEN_KEY = "refresh_token"
USER_KEY = "user"
ENVIRONMENT_KEY = "api_environment"


class StateStore:
    """Key/value store backed by a JSON file."""

    def __init__(self, path: Path | None = None):
        self.path = Path(path) if path is not None else None
        self._data: dict = self._read()

    def _read(self) -> dict:
        if self.path is None or not self.path.is_file():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Atomic replace
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(self._data, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)

    def get(self, key: str, default: object = None) -> object:
        return self._data.get(key, default)

    def update(self, values: dict) -> None:
        """Set several keys in one write."""
        self._data.update(values)
        self._write()

    def remove(self, *keys: str) -> None:
        for key in keys:
            self._data.pop(key, None)
        self._write()

    # Credential helpers

    def load_credentials(self) -> CredentialPair | None:
        return CredentialPair.from_values(
            self._data.get(ACCESS_TOKEN_KEY), self._data.get(REFRESH_TOKEN_KEY)
        )

    def save_credentials(self, pair: CredentialPair) -> None:
        self.update({ACCESS_TOKEN_KEY: pair.access_token, REFRESH_TOKEN_KEY: pair.refresh_token})

    def load_user(self) -> UserProfile | None:
        data = self._data.get(USER_KEY)
        if not isinstance(data, dict):
            return None
        return UserProfile.from_dict(data)

    def save_user(self, user: UserProfile) -> None:
        self.update({USER_KEY: user.to_dict()})

    def clear_auth(self) -> None:
        self.remove(ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, USER_KEY)

    # Environment selection

    def load_environment(self) -> str | None:
        env = self._data.get(ENVIRONMENT_KEY)
        return env if isinstance(env, str) else None

    def save_environment(self, environment: str) -> None:
        self.update({ENVIRONMENT_KEY: environment})
