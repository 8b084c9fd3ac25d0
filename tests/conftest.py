"""Shared fixtures: fake OAuth client and a free localhost port for the redirect listener."""

import socket

import pytest

from gphoto_albums.config import ClientConfig


def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture(autouse=True)
def _clear_client_env(monkeypatch):
    """Keep a developer's real client credentials out of the tests."""
    for name in ("GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET", "GOOGLE_REDIRECT_URI"):
        monkeypatch.delenv(name, raising=False)
    # Listener tests talk to 127.0.0.1 directly, never through a proxy.
    monkeypatch.setenv("NO_PROXY", "127.0.0.1,localhost")
    monkeypatch.setenv("no_proxy", "127.0.0.1,localhost")


@pytest.fixture
def client_config() -> ClientConfig:
    return ClientConfig(
        client_id="client-id.apps.googleusercontent.com",
        client_secret="client-secret",
        redirect_uri=f"http://127.0.0.1:{free_port()}/oauth2callback",
        scopes=("scope-a", "scope-b"),
        auth_uri="https://auth.example.com/o/oauth2/v2/auth",
        token_uri="https://auth.example.com/token",
    )
