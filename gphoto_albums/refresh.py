from __future__ import annotations

import calendar
from dataclasses import dataclass
from typing import Optional

from google.auth import exceptions as google_exceptions
from google.auth.transport import Request as BaseRequest
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from loguru import logger

from .config import ClientConfig
from .errors import RefreshRejected, RefreshTransportFailed


@dataclass(frozen=True)
class RefreshResult:
    access_token: str
    expiry_date: Optional[int] = None
    # Only set when the provider issued a different refresh token.
    refresh_token: Optional[str] = None


class RefreshFlow:
    def __init__(self, config: ClientConfig, *, request: Optional[BaseRequest] = None) -> None:
        self._config = config
        self._request = request or Request()

    def refresh(self, refresh_token: str) -> RefreshResult:
        logger.info("Re-authenticating with refresh token")
        creds = Credentials(
            token=None,
            refresh_token=refresh_token,
            token_uri=self._config.token_uri,
            client_id=self._config.client_id,
            client_secret=self._config.client_secret,
        )
        try:
            creds.refresh(self._request)
        except google_exceptions.RefreshError as e:
            # 5xx/429 answers arrive as retryable RefreshErrors once google-auth gives up.
            if getattr(e, "retryable", False):
                raise RefreshTransportFailed(f"Token endpoint temporarily unavailable: {e}") from e
            raise RefreshRejected(f"Refresh token rejected by the token endpoint: {e}") from e
        except google_exceptions.TransportError as e:
            raise RefreshTransportFailed(f"Token endpoint unreachable: {e}") from e

        if not creds.token:
            raise RefreshRejected("Token endpoint returned no access token")

        expiry_date = None
        if creds.expiry is not None:
            # google-auth reports expiry as a naive UTC datetime.
            expiry_date = calendar.timegm(creds.expiry.utctimetuple()) * 1000

        reissued = creds.refresh_token if creds.refresh_token and creds.refresh_token != refresh_token else None
        return RefreshResult(access_token=creds.token, expiry_date=expiry_date, refresh_token=reissued)
