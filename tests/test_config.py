"""Tests for client configuration loading."""

import json

import pytest

from gphoto_albums.config import (
    DEFAULT_REDIRECT_URI,
    DEFAULT_SCOPES,
    PHOTOS_READONLY_SCOPE,
    PHOTOS_SHARING_SCOPE,
    load_client_config,
)
from gphoto_albums.errors import ConfigMissing


def _write_secrets(path, section="web", **overrides):
    body = {
        "client_id": "file-id",
        "client_secret": "file-secret",
        "redirect_uris": ["http://localhost:3000/oauth2callback"],
    }
    body.update(overrides)
    path.write_text(json.dumps({section: body}))
    return path


def test_web_client_file(tmp_path):
    config = load_client_config(str(_write_secrets(tmp_path / "credentials.json")))
    assert config.client_id == "file-id"
    assert config.client_secret == "file-secret"
    assert config.redirect_uri == "http://localhost:3000/oauth2callback"
    assert config.redirect_host == "localhost"
    assert config.redirect_port == 3000
    assert config.redirect_path == "/oauth2callback"
    assert config.scopes == DEFAULT_SCOPES == (PHOTOS_READONLY_SCOPE, PHOTOS_SHARING_SCOPE)


def test_installed_client_file(tmp_path):
    path = _write_secrets(tmp_path / "credentials.json", section="installed")
    assert load_client_config(str(path)).client_id == "file-id"


def test_missing_redirect_uri_uses_default(tmp_path):
    path = _write_secrets(tmp_path / "credentials.json", redirect_uris=[])
    assert load_client_config(str(path)).redirect_uri == DEFAULT_REDIRECT_URI


def test_custom_scopes_keep_order(tmp_path):
    path = _write_secrets(tmp_path / "credentials.json")
    config = load_client_config(str(path), scopes=["b", "a"])
    assert config.scopes == ("b", "a")


def test_env_overrides_file(tmp_path, monkeypatch):
    path = _write_secrets(tmp_path / "credentials.json")
    monkeypatch.setenv("GOOGLE_CLIENT_ID", "env-id")
    monkeypatch.setenv("GOOGLE_REDIRECT_URI", "http://127.0.0.1:8080/cb")
    config = load_client_config(str(path))
    assert config.client_id == "env-id"
    assert config.client_secret == "file-secret"
    assert config.redirect_port == 8080
    assert config.redirect_path == "/cb"


def test_env_only_needs_no_file(tmp_path, monkeypatch):
    monkeypatch.setenv("GOOGLE_CLIENT_ID", "env-id")
    monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "env-secret")
    config = load_client_config(str(tmp_path / "missing.json"))
    assert (config.client_id, config.client_secret) == ("env-id", "env-secret")
    assert config.redirect_uri == DEFAULT_REDIRECT_URI


def test_missing_file(tmp_path):
    with pytest.raises(ConfigMissing, match="not found"):
        load_client_config(str(tmp_path / "missing.json"))


@pytest.mark.parametrize(
    "content",
    ["{not json", "[]", json.dumps({"other": {}})],
)
def test_unreadable_file(tmp_path, content):
    path = tmp_path / "credentials.json"
    path.write_text(content)
    with pytest.raises(ConfigMissing):
        load_client_config(str(path))


def test_empty_secret(tmp_path):
    path = _write_secrets(tmp_path / "credentials.json", client_secret="")
    with pytest.raises(ConfigMissing, match="client_secret"):
        load_client_config(str(path))


def test_non_http_redirect(tmp_path):
    path = _write_secrets(tmp_path / "credentials.json", redirect_uris=["https://example.com/cb"])
    with pytest.raises(ConfigMissing, match="Redirect URI"):
        load_client_config(str(path))
