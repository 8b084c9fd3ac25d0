from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Optional, Sequence
from urllib.parse import urlsplit

from .errors import ConfigMissing


AUTH_URI = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"

PHOTOS_READONLY_SCOPE = "https://www.googleapis.com/auth/photoslibrary.readonly"
PHOTOS_SHARING_SCOPE = "https://www.googleapis.com/auth/photoslibrary.sharing"
DEFAULT_SCOPES = (PHOTOS_READONLY_SCOPE, PHOTOS_SHARING_SCOPE)

DEFAULT_CLIENT_SECRETS = "credentials.json"
DEFAULT_REDIRECT_URI = "http://localhost:3000/oauth2callback"


@dataclass(frozen=True)
class ClientConfig:
    client_id: str
    client_secret: str
    redirect_uri: str = DEFAULT_REDIRECT_URI
    scopes: tuple[str, ...] = DEFAULT_SCOPES
    auth_uri: str = AUTH_URI
    token_uri: str = TOKEN_URI

    @property
    def redirect_host(self) -> str:
        return urlsplit(self.redirect_uri).hostname or "localhost"

    @property
    def redirect_port(self) -> int:
        return urlsplit(self.redirect_uri).port or 80

    @property
    def redirect_path(self) -> str:
        return urlsplit(self.redirect_uri).path or "/"


def _env(name: str) -> Optional[str]:
    v = os.environ.get(name, "").strip()
    return v or None


def _read_client_secrets(path: str) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigMissing(
            f"Client secrets file not found: {path}. "
            "Download the OAuth client JSON from Google Cloud Console, "
            "or set GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET."
        ) from e
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigMissing(f"Unable to read client secrets file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigMissing(f"Client secrets file {path} is not a JSON object")
    # Web clients and desktop ("installed") clients share the same shape.
    section = data.get("web") or data.get("installed")
    if not isinstance(section, dict):
        raise ConfigMissing(f"Client secrets file {path} has no 'web' or 'installed' section")
    return section


def load_client_config(
    path: str = DEFAULT_CLIENT_SECRETS,
    *,
    scopes: Sequence[str] = DEFAULT_SCOPES,
) -> ClientConfig:
    """Resolve the registered OAuth client.

    GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET and GOOGLE_REDIRECT_URI override the
    client secrets file; the file is only read when the environment does not
    supply both the id and the secret.
    """
    client_id = _env("GOOGLE_CLIENT_ID")
    client_secret = _env("GOOGLE_CLIENT_SECRET")
    redirect_uri = _env("GOOGLE_REDIRECT_URI")

    if not (client_id and client_secret):
        section = _read_client_secrets(path)
        client_id = client_id or (section.get("client_id") or "").strip()
        client_secret = client_secret or (section.get("client_secret") or "").strip()
        redirect_uris = section.get("redirect_uris") or []
        if not redirect_uri and redirect_uris:
            redirect_uri = str(redirect_uris[0]).strip()

    if not client_id:
        raise ConfigMissing("Missing OAuth client_id")
    if not client_secret:
        raise ConfigMissing("Missing OAuth client_secret")

    redirect_uri = redirect_uri or DEFAULT_REDIRECT_URI
    parts = urlsplit(redirect_uri)
    if parts.scheme != "http" or not parts.hostname:
        raise ConfigMissing(
            f"Redirect URI must be a local http:// URL, got {redirect_uri!r}"
        )

    return ClientConfig(
        client_id=client_id,
        client_secret=client_secret,
        redirect_uri=redirect_uri,
        scopes=tuple(scopes),
    )
