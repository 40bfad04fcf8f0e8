"""Tests for persisted client state."""

import json
from pathlib import Path

from ytscribe.auth.storage import (
    ACCESS_TOKEN_KEY,
    ENVIRONMENT_KEY,
    REFRESH_TOKEN_KEY,
    USER_KEY,
    StateStore,
)
from ytscribe.core.models import CredentialPair, UserProfile


def test_credentials_persist_across_instances(tmp_path: Path):
    """Credentials survive a new store instance."""
    path = tmp_path / "state" / "state.json"
    StateStore(path).save_credentials(CredentialPair("access", "refresh"))

    reloaded = StateStore(path)
    assert reloaded.load_credentials() == CredentialPair("access", "refresh")
    data = json.loads(path.read_text())
    assert data[ACCESS_TOKEN_KEY] == "access"
    assert data[REFRESH_TOKEN_KEY] == "refresh"


def test_partial_pair_is_absent(tmp_path: Path):
    """A half-stored pair loads as absent."""
    path = tmp_path / "state.json"
    path.write_text(json.dumps({ACCESS_TOKEN_KEY: "access", REFRESH_TOKEN_KEY: ""}))
    assert StateStore(path).load_credentials() is None


def test_corrupt_file_loads_empty(tmp_path: Path):
    """A corrupt state file loads as empty."""
    path = tmp_path / "state.json"
    path.write_text("{not json")
    store = StateStore(path)
    assert store.load_credentials() is None
    assert store.load_environment() is None


def test_clear_auth_keeps_environment(tmp_path: Path):
    """Clearing auth keeps the chosen environment."""
    path = tmp_path / "state.json"
    store = StateStore(path)
    store.save_environment("local")
    store.save_credentials(CredentialPair("a", "r"))
    store.save_user(UserProfile(id="1", email="a@b.c"))

    store.clear_auth()

    data = json.loads(path.read_text())
    assert USER_KEY not in data
    assert ACCESS_TOKEN_KEY not in data
    assert data[ENVIRONMENT_KEY] == "local"


def test_user_roundtrip():
    """The user profile is persisted."""
    store = StateStore()
    store.save_user(UserProfile(id="7", email="x@y.z", name="X"))
    user = store.load_user()
    assert user.id == "7"
    assert user.name == "X"


def test_memory_store_writes_nothing(tmp_path: Path, monkeypatch):
    """An in-memory store never touches disk."""
    monkeypatch.chdir(tmp_path)
    store = StateStore()
    store.save_credentials(CredentialPair("a", "r"))
    assert list(tmp_path.iterdir()) == []
